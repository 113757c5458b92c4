"""Library App - lending backend package

This package contains the application modules:
- API endpoints (api.py)
- Lending service logic (library.py)
- CLI interface (cli.py)
- Data models (book.py, loan.py)
- Storage layer (database.py, repositories.py)
- Validation and error payloads (validators.py, errors.py)
"""

__version__ = "1.0.0"
