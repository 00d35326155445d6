from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from threading import RLock
from typing import List

from .errors import TodoNotFoundError
from .models import TodoEntity
from .settings import Settings, masked_url

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Every method raises StoreError (or its subclass TodoNotFoundError) when
    the storage call fails. Implementations must be safe to share between
    request threads.
    """

    @abstractmethod
    def list_todos(self) -> List[TodoEntity]:
        """Return every TodoEntity in ascending id order."""

    @abstractmethod
    def create_todo(self, body: str, completed: bool) -> TodoEntity:
        """Insert a row and return it with its assigned id and created_at."""

    @abstractmethod
    def get_todo_by_id(self, todo_id: int) -> TodoEntity:
        """Return the TodoEntity for todo_id. Raise TodoNotFoundError if missing."""

    @abstractmethod
    def update_todo(self, todo_id: int, body: str, completed: bool) -> TodoEntity:
        """Overwrite body and completed for todo_id and return the stored row."""

    @abstractmethod
    def delete_todo(self, todo_id: int) -> None:
        """Delete the row for todo_id. Deleting a missing id is not an error."""

    def close(self) -> None:
        """Release backend resources. No-op unless the backend holds a pool."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def list_todos(self) -> List[TodoEntity]:
        with self._lock:
            # Return copies to avoid external mutation
            return [self._items[k].copy() for k in sorted(self._items)]

    def create_todo(self, body: str, completed: bool) -> TodoEntity:
        entity: TodoEntity = {
            "id": self._allocate_id(),
            "body": body,
            "completed": completed,
            "created_at": self._now(),
        }
        with self._lock:
            self._items[entity["id"]] = entity
            return entity.copy()

    def get_todo_by_id(self, todo_id: int) -> TodoEntity:
        with self._lock:
            item = self._items.get(todo_id)
            if item is None:
                raise TodoNotFoundError(todo_id)
            return item.copy()

    def update_todo(self, todo_id: int, body: str, completed: bool) -> TodoEntity:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                raise TodoNotFoundError(todo_id)
            updated = existing.copy()
            updated["body"] = body
            updated["completed"] = completed
            self._items[todo_id] = updated
            return updated.copy()

    def delete_todo(self, todo_id: int) -> None:
        with self._lock:
            self._items.pop(todo_id, None)


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Construct the repository selected by settings.persistence_backend.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository on settings.sqlite_db_path
    - sql: SQLAlchemyRepository on settings.database_url
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using sqlite store at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    if settings.persistence_backend == "sql":
        from .sql_store import SQLAlchemyRepository

        logger.info("Using SQL store at %s", masked_url(settings.database_url))
        return SQLAlchemyRepository.from_url(settings.database_url)
    logger.info("Using in-memory store")
    return InMemoryRepository()
