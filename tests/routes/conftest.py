"""Fixtures for route tests: the real app over in-memory services."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from bidflow.app import create_app
from bidflow.auth.middleware import require_actor


def _settings() -> SimpleNamespace:
    return SimpleNamespace(
        app=SimpleNamespace(
            env="test", secret_key="test-key", log_level="INFO", is_development=False
        ),
        storage=SimpleNamespace(base_url="https://graph.example.test/v1.0"),
    )


@pytest.fixture
def caller(creator):
    """Mutable holder for the actor the app authenticates requests as."""
    return SimpleNamespace(actor=creator)


@pytest.fixture
def client(service, caller):
    cosmos = MagicMock()
    cosmos.close = AsyncMock()
    cosmos.database.read = AsyncMock()
    storage = SimpleNamespace(
        credentials=MagicMock(close=AsyncMock()), store=MagicMock(close=AsyncMock())
    )
    with (
        patch("bidflow.app.load_settings", return_value=_settings()),
        patch("bidflow.app.configure_logging"),
        patch("bidflow.app.init_database", new=AsyncMock(return_value=cosmos)),
        patch("bidflow.app.init_storage", new=AsyncMock(return_value=storage)),
        patch("bidflow.app.init_generation"),
        patch("bidflow.app.init_services", return_value=service),
    ):
        app = create_app()
        app.dependency_overrides[require_actor] = lambda: caller.actor
        with TestClient(app) as test_client:
            yield test_client
