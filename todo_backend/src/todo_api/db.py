from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List

from .errors import StoreError, TodoNotFoundError
from .models import TodoEntity, coerce_timestamp
from .repositories import Repository


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    body: str = "body"
    completed: str = "completed"
    created_at: str = "created_at"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    Each call opens its own connection, so one instance can serve many threads.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, ValueError, TypeError) as e:
            # Row conversion failures count as store failures too
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.body} TEXT NOT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NULL
                )
                """
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_COLS.id]),
            "body": str(row[_COLS.body]),
            "completed": bool(row[_COLS.completed]),
            "created_at": coerce_timestamp(row[_COLS.created_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: int) -> TodoEntity:
        row = conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)
        ).fetchone()
        if row is None:
            raise TodoNotFoundError(todo_id)
        return self._row_to_entity(row)

    def list_todos(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.id}"
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def create_todo(self, body: str, completed: bool) -> TodoEntity:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.body}, {_COLS.completed}, {_COLS.created_at})
                VALUES (?, ?, ?)
                """,
                (body, 1 if completed else 0, now),
            )
            return self._fetch(conn, cur.lastrowid)

    def get_todo_by_id(self, todo_id: int) -> TodoEntity:
        with self._conn() as conn:
            return self._fetch(conn, todo_id)

    def update_todo(self, todo_id: int, body: str, completed: bool) -> TodoEntity:
        with self._conn() as conn:
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.body} = ?, {_COLS.completed} = ?
                WHERE {_COLS.id} = ?
                """,
                (body, 1 if completed else 0, todo_id),
            )
            return self._fetch(conn, todo_id)

    def delete_todo(self, todo_id: int) -> None:
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
