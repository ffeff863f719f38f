"""Fixtures for API tests: the real application on a temporary SQLite file."""

import pytest
from fastapi.testclient import TestClient

from usersvc.presentation.api import create_app
from usersvc_config.settings import Settings

API = "/api/v1"


@pytest.fixture
def make_settings(tmp_path):
    """Build test Settings on a fresh database file, with overrides."""

    def _make(**overrides) -> Settings:
        values = {
            "environment": "test",
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'users.db'}",
            "rate_limit_enabled": False,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def client(make_settings):
    """TestClient with the lifespan running (pool opened, schema created)."""
    with TestClient(create_app(make_settings())) as test_client:
        yield test_client


@pytest.fixture
def create_user(client):
    """POST a user and return the created record."""

    def _create(**payload):
        response = client.post(f"{API}/users", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
