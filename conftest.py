import itertools

import pytest
from fastapi.testclient import TestClient

from api import create_app
from bookstore import BookStore


class SequenceIds:
    """Deterministic id generator: book-0001, book-0002, ..."""

    def __init__(self, prefix: str = "book-"):
        self._counter = itertools.count(1)
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}{next(self._counter):04d}"


class TickingClock:
    """Deterministic clock that moves one second forward on each call."""

    def __init__(self):
        self._counter = itertools.count(0)

    def __call__(self) -> str:
        return f"2024-01-01T00:00:{next(self._counter):02d}.000Z"


@pytest.fixture
def store():
    return BookStore(id_generator=SequenceIds(), clock=TickingClock())


@pytest.fixture
def client(store):
    # Every test gets its own app around its own store
    app = create_app(store=store)
    with TestClient(app) as test_client:
        yield test_client
