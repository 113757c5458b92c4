"""Storage abstractions for books and loans and their SQLite implementations.

The lending service only talks to :class:`BookRepository` and
:class:`LoanRepository`, so tests can hand it doubles instead of a database.
"""

from __future__ import annotations

import datetime
import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import List, Optional

from library_app.book import Book
from library_app.database import get_db_connection
from library_app.loan import Loan

logger = logging.getLogger(__name__)


class ConstraintViolationError(Exception):
    """The store refused a write because it would break a uniqueness rule."""


class BookRepository(ABC):
    """Port for book persistence.

    Contract:
    - find_by_isbn() returns None if no book has that isbn (no exception)
    - save() inserts a new book and returns it with its generated id
    - save() raises ConstraintViolationError if the isbn is already stored
    """

    @abstractmethod
    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        ...

    @abstractmethod
    def exists_by_isbn(self, isbn: str) -> bool:
        ...

    @abstractmethod
    def save(self, book: Book) -> Book:
        ...

    @abstractmethod
    def list_all(self) -> List[Book]:
        ...


class LoanRepository(ABC):
    """Port for loan persistence.

    Contract:
    - save() inserts when loan.id is None, otherwise updates the returned flag
    - save() raises ConstraintViolationError if the book would end up with
      two active loans
    """

    @abstractmethod
    def find_by_id(self, loan_id: int) -> Optional[Loan]:
        ...

    @abstractmethod
    def find_active_loan_for_book(self, book: Book) -> Optional[Loan]:
        ...

    @abstractmethod
    def save(self, loan: Loan) -> Loan:
        ...

    @abstractmethod
    def find(self, isbn: Optional[str] = None, customer: Optional[str] = None) -> List[Loan]:
        ...


class SqliteBookRepository(BookRepository):
    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute(
                "SELECT id, isbn, title, author FROM books WHERE isbn = ?", (isbn,)
            ).fetchone()
            return Book.from_dict(dict(row)) if row else None
        finally:
            conn.close()

    def exists_by_isbn(self, isbn: str) -> bool:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute("SELECT 1 FROM books WHERE isbn = ?", (isbn,)).fetchone()
            return row is not None
        finally:
            conn.close()

    def save(self, book: Book) -> Book:
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(
                "INSERT INTO books (isbn, title, author) VALUES (?, ?, ?)",
                (book.isbn, book.title, book.author),
            )
            conn.commit()
            return Book(isbn=book.isbn, title=book.title, author=book.author, id=cursor.lastrowid)
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(f"Book with ISBN {book.isbn} already exists.") from e
        finally:
            conn.close()

    def list_all(self) -> List[Book]:
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute("SELECT id, isbn, title, author FROM books ORDER BY id").fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()


_LOAN_SELECT = """
    SELECT l.id, l.customer, l.loan_date, l.returned,
           b.id AS book_id, b.isbn, b.title, b.author
    FROM loans l JOIN books b ON b.id = l.book_id
"""


def _loan_from_row(row: sqlite3.Row) -> Loan:
    book = Book(isbn=row["isbn"], title=row["title"], author=row["author"], id=row["book_id"])
    return Loan(
        book=book,
        customer=row["customer"],
        date=datetime.date.fromisoformat(row["loan_date"]),
        returned=bool(row["returned"]),
        id=row["id"],
    )


class SqliteLoanRepository(LoanRepository):
    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file

    def find_by_id(self, loan_id: int) -> Optional[Loan]:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute(_LOAN_SELECT + " WHERE l.id = ?", (loan_id,)).fetchone()
            return _loan_from_row(row) if row else None
        finally:
            conn.close()

    def find_active_loan_for_book(self, book: Book) -> Optional[Loan]:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute(
                _LOAN_SELECT + " WHERE l.book_id = ? AND l.returned = 0", (book.id,)
            ).fetchone()
            return _loan_from_row(row) if row else None
        finally:
            conn.close()

    def save(self, loan: Loan) -> Loan:
        conn = get_db_connection(self.db_file)
        try:
            if loan.id is None:
                cursor = conn.execute(
                    "INSERT INTO loans (book_id, customer, loan_date, returned) VALUES (?, ?, ?, ?)",
                    (loan.book.id, loan.customer, loan.date.isoformat(), int(loan.returned)),
                )
                loan_id = cursor.lastrowid
            else:
                conn.execute(
                    "UPDATE loans SET returned = ? WHERE id = ?", (int(loan.returned), loan.id)
                )
                loan_id = loan.id
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(f"Book {loan.book.isbn} already has an active loan.") from e
        finally:
            conn.close()
        return Loan(book=loan.book, customer=loan.customer, date=loan.date,
                    returned=loan.returned, id=loan_id)

    def find(self, isbn: Optional[str] = None, customer: Optional[str] = None) -> List[Loan]:
        clauses = []
        params: list = []
        if isbn:
            clauses.append("b.isbn = ?")
            params.append(isbn)
        if customer:
            clauses.append("l.customer = ?")
            params.append(customer)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(_LOAN_SELECT + where + " ORDER BY l.id", params).fetchall()
            return [_loan_from_row(row) for row in rows]
        finally:
            conn.close()
