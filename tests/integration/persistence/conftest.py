"""
Pytest fixtures for persistence tests.

Each test gets a fresh SQLite database file through aiosqlite, so the real
SQL (constraints, RETURNING, ordering) runs without external services.
Tests marked ``integration`` use PostgreSQL from TEST_DATABASE_URL instead.
"""

import os

import pytest
import pytest_asyncio

from usersvc.infrastructure.persistence.sqlalchemy import (
    DatabaseConnection,
    UserRepositorySQLAlchemy,
)


def _build_postgres_url() -> str:
    """Build PostgreSQL URL from environment variables."""
    if url := os.environ.get("TEST_DATABASE_URL"):
        return url

    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", "5432")
    user = os.environ.get("DB_USER", "postgres")
    password = os.environ.get("DB_PASSWORD", "password")
    db = os.environ.get("DB_NAME", "basic_crud_db_test")

    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"


@pytest_asyncio.fixture
async def database(sqlite_url):
    """Initialized connection manager with a fresh schema."""
    db = DatabaseConnection(sqlite_url)
    await db.initialize()
    await db.create_schema()
    yield db
    await db.close()


@pytest.fixture
def user_repo(database) -> UserRepositorySQLAlchemy:
    return UserRepositorySQLAlchemy(database)


@pytest_asyncio.fixture
async def pg_database():
    """PostgreSQL connection manager; the users table is recreated per test."""
    db = DatabaseConnection(_build_postgres_url(), pool_size=5)
    await db.initialize()
    await db.drop_schema()
    await db.create_schema()
    yield db
    await db.drop_schema()
    await db.close()
