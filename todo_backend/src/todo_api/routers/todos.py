from __future__ import annotations

import logging
import re
from typing import List

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from ..errors import ApiError, StoreError
from ..repositories import Repository
from ..schemas import (
    DeleteOut,
    ErrorOut,
    TodoCreate,
    TodoOut,
    TodoUpdate,
    describe_validation_error,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1

_ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "Invalid input"},
    500: {"model": ErrorOut, "description": "Storage failure"},
}


def _get_repo(request: Request) -> Repository:
    """
    Dependency returning the repository injected into the app by create_app.
    """
    return request.app.state.repository


async def _raw_body(request: Request) -> bytes:
    """
    Read the request body so sync handlers can parse it themselves and map
    parse failures to the API's own 400 messages.
    """
    return await request.body()


def _is_null_document(raw: bytes) -> bool:
    """A JSON `null` body carries no fields, like `{}`."""
    return raw.strip() == b"null"


def _parse_id(raw: str) -> int:
    if not _ID_PATTERN.fullmatch(raw):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid ID")
    value = int(raw)
    if not _ID_MIN <= value <= _ID_MAX:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid ID")
    return value


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every todo in store order.",
    responses={500: _ERROR_RESPONSES[500]},
)
def list_todos(repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    """
    List all todos.
    """
    logger.info("Handling GET /api/todos request")
    try:
        items = repo.list_todos()
    except StoreError as e:
        logger.error("Error listing todos: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to fetch todos: {e}") from e
    logger.info("Retrieved %d todos", len(items))
    return [TodoOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a new todo from a JSON object with a non-empty `body`. "
        "New todos always start with `completed` set to false."
    ),
    responses=_ERROR_RESPONSES,
)
def create_todo(raw: bytes = Depends(_raw_body), repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Create a new Todo.
    """
    logger.info("Received create todo request")
    try:
        payload = TodoCreate() if _is_null_document(raw) else TodoCreate.model_validate_json(raw)
    except ValidationError as e:
        detail = describe_validation_error(e)
        logger.warning("Error parsing request body: %s", detail)
        raise ApiError(status.HTTP_400_BAD_REQUEST, f"Cannot parse JSON: {detail}") from e

    if not payload.body:
        logger.warning("Empty todo body received")
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Body is required")

    try:
        created = repo.create_todo(payload.body, completed=False)
    except StoreError as e:
        logger.error("Error creating todo: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to create todo: {e}") from e

    logger.info("Todo %d created", created["id"])
    return TodoOut(**created)


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Toggle the todo's completion flag. Fields present in the JSON body "
        "(`body`, `completed`) overwrite the toggled defaults."
    ),
    responses=_ERROR_RESPONSES,
)
def update_todo(
    todo_id: str,
    raw: bytes = Depends(_raw_body),
    repo: Repository = Depends(_get_repo),
) -> TodoOut:
    """
    Update a Todo. A missing row surfaces as a 500 fetch failure, not 404.
    """
    tid = _parse_id(todo_id)

    try:
        existing = repo.get_todo_by_id(tid)
    except StoreError as e:
        logger.error("Error fetching todo %d: %s", tid, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch existing todo") from e

    body = existing["body"]
    completed = not existing["completed"]

    if raw.strip() and not _is_null_document(raw):
        try:
            payload = TodoUpdate.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Error parsing update for todo %d: %s", tid, describe_validation_error(e))
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Cannot parse JSON") from e
        if payload.body is not None:
            body = payload.body
        if payload.completed is not None:
            completed = payload.completed

    try:
        updated = repo.update_todo(tid, body, completed)
    except StoreError as e:
        logger.error("Error updating todo %d: %s", tid, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update todo") from e

    logger.info("Todo %d updated (completed=%s)", tid, updated["completed"])
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeleteOut,
    summary="Delete Todo",
    description="Delete a todo by id. Succeeds whether or not the row existed.",
    responses=_ERROR_RESPONSES,
)
def delete_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> DeleteOut:
    """
    Delete a Todo.
    """
    tid = _parse_id(todo_id)
    try:
        repo.delete_todo(tid)
    except StoreError as e:
        logger.error("Error deleting todo %d: %s", tid, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete todo") from e
    logger.info("Todo %d deleted", tid)
    return DeleteOut(success=True)
