import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from todo_api.errors import StoreError  # noqa: E402
from todo_api.main import create_app  # noqa: E402
from todo_api.repositories import InMemoryRepository, Repository  # noqa: E402


class FailingRepository(Repository):
    """Repository whose every call fails like an unreachable database."""

    def list_todos(self):
        raise StoreError("connection refused")

    def create_todo(self, body, completed):
        raise StoreError("connection refused")

    def get_todo_by_id(self, todo_id):
        raise StoreError("connection refused")

    def update_todo(self, todo_id, body, completed):
        raise StoreError("connection refused")

    def delete_todo(self, todo_id):
        raise StoreError("connection refused")


class UpdateFailsRepository(InMemoryRepository):
    """In-memory store that reads fine but rejects writes on update."""

    def update_todo(self, todo_id, body, completed):
        raise StoreError("lock wait timeout exceeded")


class BrokenRepository(InMemoryRepository):
    """In-memory store with a bug that raises outside the StoreError contract."""

    def list_todos(self):
        raise RuntimeError("unexpected")


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def client(repo):
    with TestClient(create_app(repository=repo)) as c:
        yield c


@pytest.fixture
def make_client():
    """Build a client around an arbitrary repository."""
    clients = []

    def _make(repository):
        c = TestClient(create_app(repository=repository))
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
