from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from library_app.errors import LibraryError

BOOK_FIELDS = ("isbn", "title", "author")
LOAN_FIELDS = ("isbn", "customer")


class TextValidator:
    """Small text checks shared by the request validators."""

    @staticmethod
    def is_blank(text: Optional[Any]) -> bool:
        if text is None:
            return True
        return not str(text).strip()

    @staticmethod
    def required_message(field: str) -> str:
        return f"{field} must not be empty"


def missing_field_messages(data: Mapping[str, Any], fields: Sequence[str]) -> Dict[str, str]:
    """Map each blank field to its message, in declaration order."""
    return {
        field: TextValidator.required_message(field)
        for field in fields
        if TextValidator.is_blank(data.get(field))
    }


def _missing_fields(data: Mapping[str, Any], fields: Sequence[str]) -> List[str]:
    return list(missing_field_messages(data, fields).values())


def validate_book_payload(data: Mapping[str, Any]) -> Optional[LibraryError]:
    """Check a book registration payload; returns None when it is acceptable."""
    messages = _missing_fields(data, BOOK_FIELDS)
    return LibraryError.field_validation(messages) if messages else None


def validate_loan_payload(data: Mapping[str, Any]) -> Optional[LibraryError]:
    """Check a loan request payload; returns None when it is acceptable."""
    messages = _missing_fields(data, LOAN_FIELDS)
    return LibraryError.field_validation(messages) if messages else None
