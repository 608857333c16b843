"""API tests for the recap, profile and auth endpoints."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from recap.constants import ACCESS_TOKEN_COOKIE, EXPIRES_AT_COOKIE, PROVIDER_COOKIE, RECAP_COOKIES, STATE_COOKIE
from recap.main import app
from recap.models.domain import AthleteProfile, RateLimitInfo
from recap.services.errors import AuthExpired, RateLimited
from recap.services.provider_registry import ProviderRegistry
from recap.services.providers.base import ProviderType
from recap.services.providers.intervals_icu import AUTHORIZE_ENDPOINT, IntervalsIcuClient


@pytest.fixture
def strava_client(make_activity):
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).replace(microsecond=0, tzinfo=None)
    client = MagicMock()
    client.provider_type = ProviderType.STRAVA
    client.fetch_activities.return_value = [
        make_activity(yesterday.isoformat(), "Run", 5000, 1500),
        make_activity((yesterday - timedelta(hours=2)).isoformat(), "Ride", 20000, 3600),
    ]
    client.fetch_profile.return_value = AthleteProfile("Ada", "Lovelace")
    client.revoke_access.return_value = True
    client.generate_auth_url.return_value = "https://www.strava.com/oauth/authorize?client_id=test"
    return client


@pytest.fixture
def registry(strava_client, override_registry):
    registry = ProviderRegistry()
    registry.register(ProviderType.STRAVA, strava_client)
    registry.register(
        ProviderType.INTERVALS_ICU,
        IntervalsIcuClient(client_id="icu-client", redirect_uri="http://testserver/callback", session=MagicMock()),
    )
    override_registry(registry)
    return registry


@pytest.fixture
def api(registry):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def connected_api(api):
    expires_at = int(datetime.now(timezone.utc).timestamp()) + 3600
    api.cookies.set(ACCESS_TOKEN_COOKIE, "token")
    api.cookies.set(EXPIRES_AT_COOKIE, str(expires_at))
    api.cookies.set(PROVIDER_COOKIE, "strava")
    return api


def test_health_check(test_client):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_recap_without_token_is_not_connected(api, strava_client):
    response = api.get("/api/recap", params={"type": "rolling", "days": "7"})

    assert response.status_code == 200
    assert response.json() == {"connected": False}
    assert response.headers["cache-control"] == "no-store"
    strava_client.fetch_activities.assert_not_called()


def test_recap_for_connected_athlete(connected_api):
    response = connected_api.get("/api/recap", params={"type": "rolling", "days": "7"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    data = response.json()
    assert data["connected"] is True
    assert data["provider"] == "strava"
    assert data["total"]["activities"] == 2
    assert data["availableActivityTypes"] == ["Run", "Ride"]
    assert set(data["highlights"]) >= {"longestActivity", "best5kActivity", "timeOfDayPersona"}


def test_recap_activity_type_filter(connected_api):
    response = connected_api.get("/api/recap", params={"type": "rolling", "days": "7", "activityType": "RIDE"})

    data = response.json()
    assert data["total"]["activities"] == 1
    assert data["breakdown"][0]["type"] == "Ride"
    assert data["availableActivityTypes"] == ["Run", "Ride"]


def test_recap_activity_group_filter(connected_api):
    response = connected_api.get("/api/recap", params={"type": "rolling", "days": "7", "activityGroup": "running"})

    data = response.json()
    assert data["total"]["activities"] == 1
    assert data["breakdown"][0]["type"] == "Run"


def test_rate_limit_is_reported_in_body(connected_api, strava_client):
    strava_client.fetch_activities.side_effect = RateLimited(
        "Rate limit exceeded", rate_limit=RateLimitInfo(limit="100,1000", usage="101,500")
    )

    response = connected_api.get("/api/recap", params={"type": "rolling", "days": "7"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    assert response.json() == {
        "connected": True,
        "error": "Rate limit exceeded",
        "errorKind": "rate_limited",
        "retryable": True,
        "rateLimit": {"limit": "100,1000", "usage": "101,500", "readLimit": None, "readUsage": None},
    }


def test_expired_provider_token_reports_disconnected(connected_api, strava_client):
    strava_client.fetch_activities.side_effect = AuthExpired()

    response = connected_api.get("/api/recap")

    assert response.json() == {"connected": False}


def test_expired_cookie_reports_disconnected(connected_api, strava_client):
    connected_api.cookies.set(EXPIRES_AT_COOKIE, "1")

    response = connected_api.get("/api/recap")

    assert response.json() == {"connected": False}
    strava_client.fetch_activities.assert_not_called()


def test_me_returns_profile(connected_api):
    response = connected_api.get("/api/me")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    assert response.json() == {
        "connected": True,
        "provider": "strava",
        "profile": {"firstName": "Ada", "lastName": "Lovelace", "fullName": "Ada Lovelace"},
    }


def test_connect_redirects_with_state_cookie(api):
    response = api.get(
        "/api/provider/connect",
        params={"provider": "intervals", "returnTo": "/recap"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"].startswith(AUTHORIZE_ENDPOINT)
    state = response.cookies.get(STATE_COOKIE)
    assert state is not None
    nonce, return_to, provider = state.split("|")
    assert len(nonce) == 32
    assert return_to == "%2Frecap"
    assert provider == "intervalsicu"


def test_connect_rejects_external_return_target(api):
    response = api.get(
        "/api/provider/connect",
        params={"returnTo": "https://example.com/phish"},
        follow_redirects=False,
    )

    state = response.cookies.get(STATE_COOKIE)
    assert state.split("|")[1:] == ["%2F", "strava"]


def test_disconnect_revokes_and_clears_cookies(connected_api, strava_client):
    response = connected_api.post("/api/disconnect")

    assert response.status_code == 200
    assert response.json() == {"connected": False, "revoked": True}
    strava_client.revoke_access.assert_called_once_with("token")
    set_cookies = " ".join(response.headers.get_list("set-cookie"))
    for name in RECAP_COOKIES:
        assert f"{name}=" in set_cookies


def test_disconnect_without_token_skips_revocation(api, strava_client):
    response = api.post("/api/disconnect")

    assert response.json() == {"connected": False, "revoked": False}
    strava_client.revoke_access.assert_not_called()


def test_unregistered_provider_is_a_server_error(override_registry, strava_client):
    registry = ProviderRegistry()
    registry.register(ProviderType.STRAVA, strava_client)
    override_registry(registry)

    with TestClient(app, raise_server_exceptions=False) as client:
        client.cookies.set(ACCESS_TOKEN_COOKIE, "token")
        client.cookies.set(PROVIDER_COOKIE, "intervalsicu")
        response = client.get("/api/recap")

    assert response.status_code == 500
