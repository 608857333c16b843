"""Provider connect redirect and disconnect endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from recap.routers.cookies import (
    clear_recap_cookies,
    credentials_from_request,
    generate_auth_state,
    provider_from_request,
    set_state_cookie,
)
from recap.services.provider_registry import ProviderRegistry, get_provider_registry
from recap.services.providers.base import parse_provider_type


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.get("/provider/connect")
def connect_provider(
    provider: str | None = None,
    returnTo: str | None = None,
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> RedirectResponse:
    """Redirect to the provider's OAuth consent page with a CSRF state cookie."""

    provider_type = parse_provider_type(provider, registry.default)
    logger.info("Provider connect request for %s", provider_type.display_name)

    client = registry.resolve(provider_type)
    state = generate_auth_state(returnTo, provider_type)

    response = RedirectResponse(client.generate_auth_url(state), status_code=302)
    set_state_cookie(response, state)
    return response


@router.post("/disconnect")
def disconnect(
    request: Request,
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> JSONResponse:
    """Revoke the provider token where supported and clear every recap cookie."""

    credentials = credentials_from_request(request)
    revoked = False
    if credentials.is_valid():
        client = registry.resolve(provider_from_request(request))
        revoked = client.revoke_access(credentials.access_token or "")
        logger.info("Disconnect from %s, token revoked=%s", client.provider_type.display_name, revoked)

    response = JSONResponse({"connected": False, "revoked": revoked}, headers={"Cache-Control": "no-store"})
    clear_recap_cookies(response)
    return response
