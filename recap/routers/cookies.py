"""Cookie names and helpers shared by the API routers."""
from __future__ import annotations

import secrets
from urllib.parse import quote

from fastapi import Request, Response

from recap.constants import (
    ACCESS_TOKEN_COOKIE,
    EXPIRES_AT_COOKIE,
    PROVIDER_COOKIE,
    RECAP_COOKIES,
    STATE_COOKIE,
)
from recap.models.domain import Credentials
from recap.services.providers.base import ProviderType


def credentials_from_request(request: Request) -> Credentials:
    expires_raw = request.cookies.get(EXPIRES_AT_COOKIE)
    try:
        expires_at = int(expires_raw) if expires_raw else None
    except ValueError:
        expires_at = None
    return Credentials(access_token=request.cookies.get(ACCESS_TOKEN_COOKIE), expires_at=expires_at)


def provider_from_request(request: Request) -> str | None:
    return request.cookies.get(PROVIDER_COOKIE)


def safe_return_to(value: str | None) -> str:
    """Only same-site relative paths are allowed as post-login destinations."""

    if not value or not value.startswith("/") or value.startswith("//"):
        return "/"
    return value


def generate_auth_state(return_to: str | None, provider_type: ProviderType) -> str:
    """``<random hex>|<url-encoded returnTo>|<provider>`` CSRF state token."""

    return f"{secrets.token_hex(16)}|{quote(safe_return_to(return_to), safe='')}|{provider_type.cookie_value}"


def set_state_cookie(response: Response, state: str) -> None:
    response.set_cookie(STATE_COOKIE, state, path="/", httponly=True, samesite="lax")


def clear_recap_cookies(response: Response) -> None:
    for name in RECAP_COOKIES:
        response.delete_cookie(name, path="/", httponly=True, samesite="lax")
