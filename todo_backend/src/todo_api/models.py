from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a persisted Todo row, shared by
    every storage backend.

    Fields:
    - id: Unique integer identifier assigned by the store
    - body: Text of the todo (never empty at creation)
    - completed: Boolean completion flag
    - created_at: Creation timestamp set by the store; None for rows without one
    """

    id: int
    body: str
    completed: bool
    created_at: Optional[datetime]


# PUBLIC_INTERFACE
def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a created_at value read from a store.

    Drivers hand back datetimes, ISO strings (sqlite) or the literal
    '0000-00-00 00:00:00' (MySQL zero dates via PyMySQL). Zero, empty and
    unparseable values become None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            value = datetime.fromisoformat(s)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.replace(tzinfo=None) == datetime.min:
        return None
    return value
