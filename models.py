from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional

DRAFT_FIELDS = ["title", "author", "isbn", "published_year", "genre", "quantity"]

# Draft attribute -> catalog JSON key.
WIRE_KEYS: Dict[str, str] = {
    "title": "title",
    "author": "author",
    "isbn": "isbn",
    "published_year": "publishedYear",
    "genre": "genre",
    "quantity": "quantity",
}


class EditMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


def coerce_int(value: Any) -> Optional[int]:
    """Best-effort integer conversion of form or JSON input; None when impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if math.isfinite(number) else None


def coerce_year(value: Any) -> Optional[int]:
    year = coerce_int(value)
    if year is None or year < 0:
        return None
    return year


def coerce_quantity(value: Any) -> int:
    quantity = coerce_int(value)
    if quantity is None or quantity < 0:
        return 0
    return quantity


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Book:
    """A catalog record as returned by the remote service."""

    title: str
    author: str
    isbn: str = ""
    published_year: Optional[int] = None
    genre: str = ""
    quantity: Optional[int] = None
    id: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Book":
        year = data.get("publishedYear")
        quantity = data.get("quantity")
        return cls(
            id=data.get("id"),
            title=_text(data.get("title")),
            author=_text(data.get("author")),
            isbn=_text(data.get("isbn")),
            published_year=coerce_year(year) if year is not None else None,
            genre=_text(data.get("genre")),
            quantity=coerce_quantity(quantity) if quantity is not None else None,
        )

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "publishedYear": self.published_year,
            "genre": self.genre,
            "quantity": self.quantity,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass
class BookDraft:
    """Form-shaped staging record; every field holds the raw text the user typed."""

    title: str = ""
    author: str = ""
    isbn: str = ""
    published_year: str = ""
    genre: str = ""
    quantity: str = "1"
    id: Any = None

    @classmethod
    def from_book(cls, book: Book) -> "BookDraft":
        return cls(
            id=book.id,
            title=book.title or "",
            author=book.author or "",
            isbn=book.isbn or "",
            published_year="" if book.published_year is None else str(book.published_year),
            genre=book.genre or "",
            quantity="1" if book.quantity is None else str(book.quantity),
        )

    def copy(self) -> "BookDraft":
        return BookDraft(**{f.name: getattr(self, f.name) for f in fields(self)})

    def is_complete(self) -> bool:
        return bool(self.title.strip() and self.author.strip())


@dataclass
class DraftTemplate:
    """Values a fresh create-mode draft starts from."""

    values: Dict[str, str] = field(default_factory=lambda: {"quantity": "1"})

    def new_draft(self) -> BookDraft:
        draft = BookDraft(quantity="")
        for name, value in self.values.items():
            if name not in DRAFT_FIELDS:
                raise KeyError(name)
            setattr(draft, name, value)
        return draft
