from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from schemas import OrderCreate


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["store_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def client(db):
    from main import app
    return TestClient(app)


@pytest.fixture
def checkout():
    """The checkout submission used throughout: two shirts at 20."""
    return {
        "name": "Ali",
        "phone": "123",
        "address": "X",
        "items": [{"id": "p1", "name": "Shirt", "price": 20, "quantity": 2}],
        "total": 40,
    }


@pytest.fixture
def order_payload(checkout):
    return OrderCreate(**checkout)


def backdate(db, collection, doc_id, **fields):
    """Rewrite timestamps on a stored document."""
    from bson import ObjectId
    db[collection].update_one({"_id": ObjectId(doc_id)}, {"$set": fields})


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)
