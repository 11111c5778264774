"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app


class FakeCursor:
    """Async-iterable stand-in for a motor cursor."""

    def __init__(self, docs):
        self._docs = list(docs)

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


def make_collection():
    collection = MagicMock()
    collection.find = MagicMock(return_value=FakeCursor([]))
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def mock_db():
    """Mock database exposing the two collections the API uses."""
    db = MagicMock()
    db.books = make_collection()
    db.borrowedBooks = make_collection()
    return db


@pytest.fixture
def client(mock_db):
    """Test client with the store dependency swapped for the mock database."""
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def store_db():
    """In-memory MongoDB with real query and update semantics."""
    return AsyncMongoMockClient()["bookDB"]


@pytest.fixture
def store_client(store_db):
    app.dependency_overrides[get_db] = lambda: store_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def book_id():
    return ObjectId()


@pytest.fixture
def sample_book(book_id):
    return {
        "_id": book_id,
        "book_title": "The Left Hand of Darkness",
        "cover_photo": "https://covers.example.org/lhod.jpg",
        "author_name": "Ursula K. Le Guin",
        "category": "Sci-Fi",
        "rating": 4.5,
        "quantity": 3,
        "borrowed_count": 0,
    }
