# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable, Iterator

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app


@pytest.fixture()
def db():
    """
    In-process MongoDB (mongomock) with the real indexes.

    A fresh database per test keeps users and tasks isolated.
    """
    database = mongomock.MongoClient()["focus_tasks_test"]
    ensure_indexes(database)
    return database


@pytest.fixture()
def client(db) -> Iterator[TestClient]:
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def signup(client: TestClient) -> Callable[..., dict]:
    """Register a user and return the {token, user} payload."""

    def _signup(email: str = "ana@example.com", password: str = "secret1", full_name: str = "Ana") -> dict:
        r = client.post("/api/auth/signup", json={"email": email, "password": password, "fullName": full_name})
        assert r.status_code == 201, r.text
        return r.json()

    return _signup


@pytest.fixture()
def auth_headers(signup) -> Callable[..., dict]:
    def _headers(email: str = "ana@example.com") -> dict:
        token = signup(email=email)["token"]
        return {"Authorization": f"Bearer {token}"}

    return _headers
