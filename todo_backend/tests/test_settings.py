import pytest

from todo_api.db import SQLiteRepository
from todo_api.repositories import InMemoryRepository, build_repository
from todo_api.settings import get_settings, masked_url
from todo_api.sql_store import SQLAlchemyRepository

_ENV_VARS = [
    "PERSISTENCE_BACKEND",
    "SQLITE_DB_PATH",
    "DATABASE_URL",
    "DB_USER",
    "DB_PASSWORD",
    "DB_HOST",
    "DB_NAME",
    "CORS_ALLOW_ORIGINS",
    "HOST",
    "PORT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.sqlite_db_path == "./data/todos.db"
        assert s.cors_allow_origins == ["*"]
        assert s.host == "0.0.0.0"
        assert s.port == 5000
        assert s.log_level == "INFO"

    def test_unknown_backend_falls_back_to_memory(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "postgres-ish")
        assert get_settings().persistence_backend == "memory"

    def test_database_url_from_parts(self, clean_env):
        clean_env.setenv("DB_USER", "app")
        clean_env.setenv("DB_PASSWORD", "secret")
        clean_env.setenv("DB_HOST", "db:3307")
        clean_env.setenv("DB_NAME", "todos")
        s = get_settings()
        assert s.database_url == "mysql+pymysql://app:secret@db:3307/todos?charset=utf8mb4"
        assert "secret" not in masked_url(s.database_url)

    def test_explicit_database_url_wins(self, clean_env):
        clean_env.setenv("DATABASE_URL", "sqlite:///todos.db")
        clean_env.setenv("DB_HOST", "ignored")
        assert get_settings().database_url == "sqlite:///todos.db"

    def test_port_and_origins(self, clean_env):
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
        s = get_settings()
        assert s.port == 8080
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]

    def test_invalid_port_uses_default(self, clean_env):
        clean_env.setenv("PORT", "not-a-port")
        assert get_settings().port == 5000


class TestBuildRepository:
    def test_memory(self, clean_env):
        assert isinstance(build_repository(get_settings()), InMemoryRepository)

    def test_sqlite(self, clean_env, tmp_path):
        clean_env.setenv("PERSISTENCE_BACKEND", "sqlite")
        clean_env.setenv("SQLITE_DB_PATH", str(tmp_path / "todos.db"))
        repo = build_repository(get_settings())
        assert isinstance(repo, SQLiteRepository)
        assert (tmp_path / "todos.db").exists()

    def test_sql(self, clean_env, tmp_path):
        clean_env.setenv("PERSISTENCE_BACKEND", "sql")
        clean_env.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'todos.db'}")
        repo = build_repository(get_settings())
        assert isinstance(repo, SQLAlchemyRepository)
        repo.close()
