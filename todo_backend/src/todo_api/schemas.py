from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
)

from .models import coerce_timestamp


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Payload accepted by ``POST /api/todos``.

    ``body`` is checked for emptiness by the route rather than here so an
    empty body maps to "Body is required" instead of a parse error.
    ``completed`` is accepted but always overridden to False.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"body": "buy milk"}},
    )

    body: Optional[StrictStr] = Field(default=None, description="Text of the todo item")
    completed: Optional[StrictBool] = Field(
        default=None, description="Ignored; new todos always start incomplete"
    )


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Payload accepted by ``PATCH /api/todos/{id}``.
    All fields are optional; absent or null fields leave the route's defaults
    in place (existing body, toggled completion).
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"body": "buy oat milk", "completed": True}},
    )

    body: Optional[StrictStr] = Field(default=None, description="Replacement text")
    completed: Optional[StrictBool] = Field(default=None, description="Explicit completion flag")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "body": "buy milk",
                "completed": False,
                "created_at": "2024-06-01T10:15:30",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    body: str = Field(..., description="Text of the todo item")
    completed: bool = Field(..., description="Completion status flag")
    created_at: Optional[datetime] = Field(
        default=None, description="Creation timestamp, null when the row has none"
    )

    @field_validator("created_at", mode="before")
    @classmethod
    def zero_timestamp_is_null(cls, v: Any) -> Optional[datetime]:
        """
        Render zero, empty or unparseable timestamps as null.
        """
        return coerce_timestamp(v)


class ErrorOut(BaseModel):
    error: str = Field(..., description="Human readable error message")


class DeleteOut(BaseModel):
    success: bool = Field(True, description="Always true when the delete statement ran")


def describe_validation_error(exc: ValidationError) -> str:
    """
    Collapse a pydantic ValidationError into a single line such as
    ``body: Input should be a valid string``.
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
