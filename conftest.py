import pytest

from library_app.library import Library


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def lib(db_file):
    return Library(db_file=db_file)
