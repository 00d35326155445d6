from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from sqlalchemy.engine import URL, make_url


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'sql'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - DATABASE_URL: SQLAlchemy URL for the 'sql' backend
    - DB_USER, DB_PASSWORD, DB_HOST, DB_NAME: MySQL connection parts, used
      when DATABASE_URL is not set
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - HOST: listen address (default 0.0.0.0)
    - PORT: listen port (default 5000)
    - LOG_LEVEL: logging level name (default INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    database_url: str
    cors_allow_origins: List[str]
    host: str
    port: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _build_database_url() -> str:
    """
    Return DATABASE_URL if set, otherwise assemble a MySQL URL from the
    DB_USER/DB_PASSWORD/DB_HOST/DB_NAME parts.
    """
    explicit = os.getenv("DATABASE_URL", "").strip()
    if explicit:
        return explicit

    host = _get_env("DB_HOST", "localhost").strip()
    port = None
    if ":" in host:
        host, _, raw_port = host.partition(":")
        port = _parse_int(raw_port, 3306)

    url = URL.create(
        "mysql+pymysql",
        username=os.getenv("DB_USER") or None,
        password=os.getenv("DB_PASSWORD") or None,
        host=host,
        port=port,
        database=os.getenv("DB_NAME") or None,
        query={"charset": "utf8mb4"},
    )
    return url.render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def masked_url(database_url: str) -> str:
    """Render a database URL with its password hidden, for log output."""
    return make_url(database_url).render_as_string(hide_password=True)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite", "sql"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        database_url=_build_database_url(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "5000"), 5000),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
