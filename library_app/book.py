from __future__ import annotations


class Book:
    """Represents a single registered book in the library."""

    def __init__(self, isbn: str, title: str, author: str, id: int | None = None) -> None:
        self.id = id
        self.isbn = isbn.strip()
        self.title = title.strip()
        self.author = author.strip()

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.id, self.isbn, self.title, self.author))

    def to_dict(self) -> dict:
        return {"id": self.id, "isbn": self.isbn, "title": self.title, "author": self.author}

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(isbn=data["isbn"], title=data["title"], author=data["author"], id=data.get("id"))
