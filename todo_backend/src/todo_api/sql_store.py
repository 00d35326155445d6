"""
SQLAlchemy-backed repository for networked relational databases.

The default DATABASE_URL targets MySQL through PyMySQL, but any dialect
SQLAlchemy supports works since statements are built with SQLAlchemy Core.
"""
from __future__ import annotations

from typing import Any, List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    select,
    type_coerce,
    update,
)
from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreError, TodoNotFoundError
from .models import TodoEntity, coerce_timestamp
from .repositories import Repository

metadata = MetaData()

todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("body", Text, nullable=False),
    Column("completed", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=True, server_default=func.now()),
)

# created_at is read as raw text so zero dates reach coerce_timestamp instead
# of failing in the dialect's DateTime result processing.
_SELECT_COLUMNS = (
    todos.c.id,
    todos.c.body,
    todos.c.completed,
    type_coerce(todos.c.created_at, Text).label("created_at"),
)

_STORE_FAILURES = (SQLAlchemyError, ValueError, TypeError)


class SQLAlchemyRepository(Repository):
    """
    Repository over a pooled SQLAlchemy Engine. The engine's pool hands each
    call its own connection, so one instance is shared by all request threads.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        try:
            metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    # PUBLIC_INTERFACE
    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "SQLAlchemyRepository":
        """Create the engine for database_url and wrap it in a repository."""
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_engine(database_url, **engine_kwargs))

    @staticmethod
    def _row_to_entity(row: Any) -> TodoEntity:
        return {
            "id": int(row.id),
            "body": str(row.body),
            "completed": bool(row.completed),
            "created_at": coerce_timestamp(row.created_at),
        }

    def _fetch(self, conn: Any, todo_id: int) -> TodoEntity:
        row = conn.execute(select(*_SELECT_COLUMNS).where(todos.c.id == todo_id)).first()
        if row is None:
            raise TodoNotFoundError(todo_id)
        return self._row_to_entity(row)

    def list_todos(self) -> List[TodoEntity]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(select(*_SELECT_COLUMNS).order_by(todos.c.id)).all()
                return [self._row_to_entity(r) for r in rows]
        except _STORE_FAILURES as e:
            raise StoreError(str(e)) from e

    def create_todo(self, body: str, completed: bool) -> TodoEntity:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(insert(todos).values(body=body, completed=completed))
                return self._fetch(conn, result.inserted_primary_key[0])
        except _STORE_FAILURES as e:
            raise StoreError(str(e)) from e

    def get_todo_by_id(self, todo_id: int) -> TodoEntity:
        try:
            with self._engine.connect() as conn:
                return self._fetch(conn, todo_id)
        except _STORE_FAILURES as e:
            raise StoreError(str(e)) from e

    def update_todo(self, todo_id: int, body: str, completed: bool) -> TodoEntity:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    update(todos)
                    .where(todos.c.id == todo_id)
                    .values(body=body, completed=completed)
                )
                return self._fetch(conn, todo_id)
        except _STORE_FAILURES as e:
            raise StoreError(str(e)) from e

    def delete_todo(self, todo_id: int) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(todos).where(todos.c.id == todo_id))
        except _STORE_FAILURES as e:
            raise StoreError(str(e)) from e

    def close(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()
