from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Callable

# Same alphabet nanoid uses for its URL-safe ids.
ID_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"
ID_LENGTH = 16

IdGenerator = Callable[[], str]
Clock = Callable[[], str]


def generate_book_id(size: int = ID_LENGTH) -> str:
    """Return a random URL-safe token of ``size`` characters."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(size))


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. ``2024-01-02T03:04:05.678Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Book:
    """Represents a single book record on the shelf."""

    def __init__(self, id: str, name: str, year: int | None = None, author: str | None = None,
                 summary: str | None = None, publisher: str | None = None,
                 page_count: int | None = None, read_page: int | None = None,
                 finished: bool = False, reading: bool | None = None,
                 inserted_at: str | None = None, updated_at: str | None = None) -> None:
        self.id = id
        self.name = name
        self.year = year
        self.author = author
        self.summary = summary
        self.publisher = publisher
        self.page_count = page_count
        self.read_page = read_page
        self.finished = finished
        self.reading = reading
        self.inserted_at = inserted_at
        self.updated_at = updated_at or inserted_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} ({self.id})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def copy(self) -> "Book":
        return Book.from_dict(self.to_dict())

    @staticmethod
    def is_finished(page_count: int | None, read_page: int | None) -> bool:
        return page_count == read_page

    def apply(self, fields: dict) -> None:
        """Replace every editable field with the values in ``fields`` (camelCase keys)."""
        self.name = fields.get("name")
        self.year = fields.get("year")
        self.author = fields.get("author")
        self.summary = fields.get("summary")
        self.publisher = fields.get("publisher")
        self.page_count = fields.get("pageCount")
        self.read_page = fields.get("readPage")
        self.reading = fields.get("reading")

    def summarize(self) -> "BookSummary":
        return BookSummary(id=self.id, name=self.name, publisher=self.publisher)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "author": self.author,
            "summary": self.summary,
            "publisher": self.publisher,
            "pageCount": self.page_count,
            "readPage": self.read_page,
            "finished": self.finished,
            "reading": self.reading,
            "insertedAt": self.inserted_at,
            "updatedAt": self.updated_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data["id"],
            name=data["name"],
            year=data.get("year"),
            author=data.get("author"),
            summary=data.get("summary"),
            publisher=data.get("publisher"),
            page_count=data.get("pageCount"),
            read_page=data.get("readPage"),
            finished=bool(data.get("finished", False)),
            reading=data.get("reading"),
            inserted_at=data.get("insertedAt"),
            updated_at=data.get("updatedAt"),
        )


class BookSummary:
    """The ``{id, name, publisher}`` view returned when listing books."""

    def __init__(self, id: str, name: str, publisher: str | None = None) -> None:
        self.id = id
        self.name = name
        self.publisher = publisher

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BookSummary):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:  # pragma: no cover
        return f"BookSummary(id={self.id!r}, name={self.name!r})"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "publisher": self.publisher}
