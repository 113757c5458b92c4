import logging
import sqlite3

from library_app.config import settings

logger = logging.getLogger(__name__)


def get_db_connection(db_file: str | None = None) -> sqlite3.Connection:
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_file or settings.database_file)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def create_tables(db_file: str | None = None) -> None:
    """Creates the books and loans tables if they don't exist.

    Uniqueness rules live in the schema so that two concurrent writers cannot
    both pass the application-level checks: ``books.isbn`` is UNIQUE and a
    partial unique index allows a single unreturned loan per book.
    """
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                isbn TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                author TEXT NOT NULL
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS loans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                book_id INTEGER NOT NULL,
                customer TEXT NOT NULL,
                loan_date TEXT NOT NULL,
                returned INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (book_id) REFERENCES books(id)
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_loans_customer ON loans(customer)")
        cursor.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_loans_active_book "
            "ON loans(book_id) WHERE returned = 0"
        )
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: str | None = None) -> None:
    """Initializes the database, creating tables if needed."""
    create_tables(db_file)
    logger.debug(f"Database schema ready: {db_file or settings.database_file}")
