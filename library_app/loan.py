from __future__ import annotations

import datetime

from library_app.book import Book


class Loan:
    """A borrowing of one book by a customer.

    A loan is active while ``returned`` is False; a book may collect many
    returned loans but only one active loan at a time.
    """

    def __init__(self, book: Book, customer: str, date: datetime.date, returned: bool = False,
                 id: int | None = None) -> None:
        self.id = id
        self.book = book
        self.customer = customer.strip()
        self.date = date
        self.returned = returned

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        status = "returned" if self.returned else "on loan"
        return f"Loan #{self.id}: {self.book.isbn} to {self.customer} ({status})"

    @property
    def is_active(self) -> bool:
        return not self.returned

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "isbn": self.book.isbn,
            "customer": self.customer,
            "date": self.date.isoformat(),
            "returned": self.returned,
        }
