"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Callable, Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ["USE_MOCK_PROVIDER"] = "false"
os.environ["DEFAULT_PROVIDER"] = "strava"
os.environ["STRAVA_CLIENT_ID"] = os.environ.get("STRAVA_CLIENT_ID") or "test-strava-client"
os.environ["INTERVALS_CLIENT_ID"] = os.environ.get("INTERVALS_CLIENT_ID") or "test-intervals-client"
os.environ["OAUTH_REDIRECT_URI"] = "http://testserver/provider/callback"

from recap.logging_config import configure_logging

configure_logging()

from recap.cache.store import RecapCache
from recap.database import create_session_factory, init_db
from recap.main import app
from recap.models.domain import ActivityRecord
from recap.services.provider_registry import ProviderRegistry, get_provider_registry


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client."""

    return TestClient(app)


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Build a stand-in for ``requests.Response``."""

    def _make(status_code: int = 200, payload: Any = None, headers: dict[str, str] | None = None) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.reason = "OK" if status_code < 400 else "Error"
        response.headers = headers or {}
        response.json.return_value = payload if payload is not None else []
        return response

    return _make


@pytest.fixture
def make_activity() -> Callable[..., ActivityRecord]:
    counter = iter(range(1, 10_000))

    def _make(
        start: str,
        type: str = "Run",
        distance: float = 0.0,
        moving_time: int = 0,
        elevation: float = 0.0,
        avg_hr: float | None = None,
        max_hr: float | None = None,
        name: str | None = None,
    ) -> ActivityRecord:
        activity_id = next(counter)
        return ActivityRecord(
            id=activity_id,
            name=name or f"{type} {activity_id}",
            type=type,
            start_time_utc=datetime.fromisoformat(start).replace(tzinfo=timezone.utc),
            distance_meters=distance,
            moving_time_seconds=moving_time,
            elevation_gain_meters=elevation,
            average_heartrate=avg_hr,
            max_heartrate=max_hr,
        )

    return _make


@pytest.fixture
def session_factory():
    """In-memory SQLite shared across connections."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def recap_cache(session_factory) -> RecapCache:
    return RecapCache(session_factory)


@pytest.fixture
def override_registry() -> Iterator[Callable[[ProviderRegistry], None]]:
    """Swap the registry dependency for the duration of a test."""

    def _override(registry: ProviderRegistry) -> None:
        app.dependency_overrides[get_provider_registry] = lambda: registry

    yield _override
    app.dependency_overrides.pop(get_provider_registry, None)
