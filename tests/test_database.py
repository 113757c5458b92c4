import sqlite3

import pytest

from library_app.database import get_db_connection, initialize_database


@pytest.fixture
def conn(db_file):
    initialize_database(db_file)
    connection = get_db_connection(db_file)
    yield connection
    connection.close()


def _insert_book(conn, isbn="123"):
    cursor = conn.execute("INSERT INTO books (isbn, title, author) VALUES (?, 'T', 'A')", (isbn,))
    conn.commit()
    return cursor.lastrowid


def _insert_loan(conn, book_id, returned=0):
    conn.execute(
        "INSERT INTO loans (book_id, customer, loan_date, returned) VALUES (?, 'Harley', '2024-05-17', ?)",
        (book_id, returned),
    )
    conn.commit()


def test_isbn_is_unique(conn):
    _insert_book(conn, "123")

    with pytest.raises(sqlite3.IntegrityError):
        _insert_book(conn, "123")


def test_only_one_active_loan_per_book(conn):
    book_id = _insert_book(conn)
    _insert_loan(conn, book_id)

    with pytest.raises(sqlite3.IntegrityError):
        _insert_loan(conn, book_id)


def test_returned_loans_do_not_count_as_active(conn):
    book_id = _insert_book(conn)
    _insert_loan(conn, book_id, returned=1)
    _insert_loan(conn, book_id, returned=1)
    _insert_loan(conn, book_id)

    count = conn.execute("SELECT COUNT(*) FROM loans WHERE book_id = ?", (book_id,)).fetchone()[0]
    assert count == 3


def test_initialize_is_idempotent(db_file):
    initialize_database(db_file)
    initialize_database(db_file)
