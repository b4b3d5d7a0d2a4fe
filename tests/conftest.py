from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.main import app
from spendshare.models.user import User

COLLECTIONS = ("users", "friendships", "groups", "transactions", "owes", "expenses")


def make_cursor(docs=None):
    """Motor cursor stand-in: chainable sort/skip/limit, awaitable to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def make_collection():
    collection = MagicMock()
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.update_many = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
    collection.count_documents = AsyncMock(return_value=0)
    collection.find.return_value = make_cursor()
    collection.aggregate.return_value = make_cursor()
    return collection


def make_user(name="Alice", **overrides) -> User:
    fields = {
        "name": name,
        "username": name.lower(),
        "email": f"{name.lower()}@example.com",
        "password_hash": "hashed",
        "balance": Decimal("0")
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def mock_db():
    """
    Database double with one configured collection per ledger collection
    and a client whose session/transaction context managers pass through.
    """
    db = MagicMock()
    for name in COLLECTIONS:
        setattr(db, name, make_collection())

    session = MagicMock()
    transaction_cm = MagicMock()
    transaction_cm.__aenter__ = AsyncMock(return_value=None)
    transaction_cm.__aexit__ = AsyncMock(return_value=False)
    session.start_transaction = MagicMock(return_value=transaction_cm)

    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=session)
    session_cm.__aexit__ = AsyncMock(return_value=False)
    db.client.start_session = AsyncMock(return_value=session_cm)

    db.session = session
    return db


@pytest.fixture
def current_user():
    return make_user("Alice")


@pytest.fixture
def test_client(mock_db, current_user):
    """
    TestClient wired to mock_db. Used without a context manager so the
    lifespan never opens a real connection.
    """
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()
