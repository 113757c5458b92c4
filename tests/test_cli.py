import pytest
from typer.testing import CliRunner

from library_app.cli import app
from library_app.config import settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_db(db_file, monkeypatch):
    monkeypatch.setattr(settings, "database_file", db_file)
    return db_file


def test_register_and_find():
    result = runner.invoke(app, ["register", "1234", "My Adventures", "Mary"])
    assert result.exit_code == 0
    assert "Registered #1: My Adventures by Mary" in result.stdout

    result = runner.invoke(app, ["find", "1234"])
    assert result.exit_code == 0
    assert "Book Found" in result.stdout
    assert "Title: My Adventures" in result.stdout


def test_register_duplicate_isbn():
    runner.invoke(app, ["register", "1234", "My Adventures", "Mary"])

    result = runner.invoke(app, ["register", "1234", "Other", "Someone"])

    assert result.exit_code == 1
    assert "Isbn already registered" in result.stdout


def test_find_unknown_book():
    result = runner.invoke(app, ["find", "0000"])

    assert result.exit_code == 1
    assert "Book with ISBN 0000 not found." in result.stdout


def test_lend_and_return():
    runner.invoke(app, ["register", "123", "T", "A"])

    result = runner.invoke(app, ["lend", "123", "Harley"])
    assert result.exit_code == 0
    assert "Loan 1 created" in result.stdout

    result = runner.invoke(app, ["lend", "123", "Quinn"])
    assert result.exit_code == 1
    assert "Book already borrowed" in result.stdout

    result = runner.invoke(app, ["return", "1"])
    assert result.exit_code == 0
    assert "Loan 1 returned." in result.stdout


def test_lend_unknown_book():
    result = runner.invoke(app, ["lend", "999", "Harley"])

    assert result.exit_code == 1
    assert "Book not found for passed isbn" in result.stdout


def test_loans_empty():
    result = runner.invoke(app, ["loans"])

    assert result.exit_code == 0
    assert "No loans found." in result.stdout


def test_db_file_option(tmp_path):
    other = str(tmp_path / "other.db")

    result = runner.invoke(app, ["--db-file", other, "register", "9", "T", "A"])

    assert result.exit_code == 0
    assert settings.database_file == other


def test_loans_table_shows_return_state():
    runner.invoke(app, ["register", "123", "T", "A"])
    runner.invoke(app, ["lend", "123", "Harley"])

    result = runner.invoke(app, ["loans", "--customer", "Harley"])

    assert result.exit_code == 0
    assert "Harley" in result.stdout
    assert "no" in result.stdout
