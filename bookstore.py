import logging
from threading import RLock
from typing import Any, List, Optional

from book import Book, BookSummary, Clock, IdGenerator, generate_book_id, utc_now_iso
from utils.validators import BookValidator, FlagCoercer

logger = logging.getLogger(__name__)


class BookStoreError(Exception):
    """Base class for errors reported by the store."""

    status = "fail"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookStoreError, ValueError):
    status_code = 400


class NotFoundError(BookStoreError, LookupError):
    status_code = 404


class InternalError(BookStoreError, RuntimeError):
    status = "error"
    status_code = 500


class BookStore:
    """Keeps the shelf of books in memory, in insertion order.

    Every operation runs under a single lock so a validate-then-mutate sequence is
    never interleaved with another request.
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None, clock: Optional[Clock] = None,
                 *, legacy_list_filters: bool = False, recompute_finished_on_update: bool = True) -> None:
        self._id_generator = id_generator or generate_book_id
        self._clock = clock or utc_now_iso
        self.legacy_list_filters = legacy_list_filters
        self.recompute_finished_on_update = recompute_finished_on_update
        self._books: List[Book] = []
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._books)

    # ------------------------- Core operations ------------------------- #
    def create(self, fields: dict) -> str:
        """Validate ``fields`` and append a new book. Returns the generated id."""
        self._validate(fields, "Failed to add book.")
        with self._lock:
            book_id = self._new_id()
            now = self._clock()
            book = Book(
                id=book_id,
                name=fields.get("name"),
                finished=Book.is_finished(fields.get("pageCount"), fields.get("readPage")),
                inserted_at=now,
                updated_at=now,
            )
            book.apply(fields)
            self._books.append(book)

            if self._index_of(book_id) is None:
                raise InternalError("Book failed to be added")
        logger.info("Added book %s (%s)", book_id, book.name)
        return book_id

    def list(self, name: Optional[str] = None, reading: Any = None, finished: Any = None) -> List[BookSummary]:
        """Summaries of the books matching the given filters, in shelf order."""
        with self._lock:
            books = self._books
            if self.legacy_list_filters:
                selected = self._filter_last_wins(books, name, reading, finished)
            else:
                selected = [b for b in books if self._matches(b, name, reading, finished)]
            return [b.summarize() for b in selected]

    def get(self, book_id: str) -> Book:
        book = self.find(book_id)
        if book is None:
            raise NotFoundError("Book not found")
        return book

    def find(self, book_id: str) -> Optional[Book]:
        """Return a copy of the book with ``book_id``, or None.

        Stored records never leave the store; changes go through ``update``.
        """
        with self._lock:
            for book in self._books:
                if book.id == book_id:
                    return book.copy()
        logger.debug("No book with id %s", book_id)
        return None

    def update(self, book_id: str, fields: dict) -> Book:
        """Replace every editable field of a book. Partial updates are not supported."""
        self._validate(fields, "Failed to update book.")
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                raise NotFoundError("Failed to update book. Id not found")
            book = self._books[index]
            book.apply(fields)
            if self.recompute_finished_on_update:
                book.finished = Book.is_finished(book.page_count, book.read_page)
            book.updated_at = self._clock()
            updated = book.copy()
        logger.info("Updated book %s", book_id)
        return updated

    def delete(self, book_id: str) -> None:
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                raise NotFoundError("Failed to delete book. Id not found")
            del self._books[index]
        logger.info("Deleted book %s", book_id)

    def clear(self) -> None:
        with self._lock:
            self._books.clear()

    # ------------------------- Helpers ------------------------- #
    @staticmethod
    def _validate(fields: dict, action: str) -> None:
        reason = BookValidator.check(fields)
        if reason:
            raise ValidationError(f"{action} {reason}")

    def _new_id(self) -> str:
        book_id = self._id_generator()
        while self._index_of(book_id) is not None:
            logger.warning("Generated id %s is already taken, retrying", book_id)
            book_id = self._id_generator()
        return book_id

    def _index_of(self, book_id: str) -> Optional[int]:
        for index, book in enumerate(self._books):
            if book.id == book_id:
                return index
        return None

    @staticmethod
    def _name_matches(book: Book, name: str) -> bool:
        return name.lower() in (book.name or "").lower()

    def _matches(self, book: Book, name: Optional[str], reading: Any, finished: Any) -> bool:
        if name is not None and not self._name_matches(book, name):
            return False
        if reading is not None and not FlagCoercer.matches(book.reading, reading):
            return False
        if finished is not None and not FlagCoercer.matches(book.finished, finished):
            return False
        return True

    def _filter_last_wins(self, books: List[Book], name: Optional[str], reading: Any, finished: Any) -> List[Book]:
        # Each filter starts again from the whole shelf; the last one supplied decides.
        selected = books
        if name is not None:
            selected = [b for b in books if self._name_matches(b, name)]
        if reading is not None:
            selected = [b for b in books if FlagCoercer.matches(b.reading, reading)]
        if finished is not None:
            selected = [b for b in books if FlagCoercer.matches(b.finished, finished)]
        return selected
