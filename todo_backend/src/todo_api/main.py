from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ApiError
from .repositories import Repository, build_repository
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "todos", "description": "Create, list, update and delete todo items."},
]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    """Configure the root logger once; later calls keep existing handlers."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


# PUBLIC_INTERFACE
def create_app(
    repository: Optional[Repository] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        repository: Store shared by every request. Built from settings when omitted.
        settings: Runtime settings. Read from the environment when omitted.

    Returns:
        A configured FastAPI instance with the todo routes mounted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    repo = repository if repository is not None else build_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.repository.close()

    app = FastAPI(
        title="Todo Backend",
        description="Backend API service exposing CRUD operations over todo items.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.repository = repo
    app.state.settings = settings

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_methods=["GET", "POST", "HEAD", "PUT", "DELETE", "PATCH"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        """
        Render ApiError as a JSON body of the form {"error": "<message>"}.
        """
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Keep unexpected failures in the same JSON error shape as every other response.
        """
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(todos_router.router)
    return app


# PUBLIC_INTERFACE
def run() -> None:
    """Entry point: build the app from the environment and serve it with uvicorn."""
    settings = get_settings()
    app = create_app(settings=settings)
    logger.info("Listening on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
