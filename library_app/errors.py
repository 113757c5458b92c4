"""Error values returned by validators and the lending service.

Business outcomes are plain values rather than exceptions: every service
operation returns a ``(result, error)`` pair and the HTTP layer decides the
status code from ``error.kind``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

ISBN_ALREADY_REGISTERED = "Isbn already registered"
BOOK_NOT_FOUND_FOR_ISBN = "Book not found for passed isbn"
BOOK_ALREADY_BORROWED = "Book already borrowed"
BOOK_NOT_FOUND = "Book not found"
LOAN_NOT_FOUND = "Loan not found"


class ErrorKind(str, Enum):
    FIELD_VALIDATION = "field_validation"
    DUPLICATE_ISBN = "duplicate_isbn"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class LibraryError:
    """A rejected request: what kind of rule failed and the messages to report."""

    kind: ErrorKind
    messages: tuple

    @property
    def message(self) -> str:
        return "; ".join(self.messages)

    def to_payload(self) -> dict:
        return {"errors": list(self.messages)}

    @classmethod
    def field_validation(cls, messages: Iterable[str]) -> "LibraryError":
        return cls(ErrorKind.FIELD_VALIDATION, tuple(messages))

    @classmethod
    def duplicate_isbn(cls) -> "LibraryError":
        return cls(ErrorKind.DUPLICATE_ISBN, (ISBN_ALREADY_REGISTERED,))

    @classmethod
    def business_rule(cls, message: str) -> "LibraryError":
        return cls(ErrorKind.BUSINESS_RULE, (message,))

    @classmethod
    def not_found(cls, message: str) -> "LibraryError":
        return cls(ErrorKind.NOT_FOUND, (message,))


def error_payload(messages: List[str]) -> dict:
    """Build the ``{"errors": [...]}`` body for arbitrary messages."""
    return {"errors": list(messages)}
