"""Recap and athlete profile endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from recap.models.domain import RecapQuery
from recap.routers.cookies import credentials_from_request, provider_from_request
from recap.services.errors import ProviderFailure
from recap.services.provider_registry import ProviderRegistry, get_provider_registry
from recap.services.recap_service import RecapService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recap"])

NO_STORE = {"Cache-Control": "no-store"}


def get_recap_service(registry: ProviderRegistry = Depends(get_provider_registry)) -> RecapService:
    return RecapService(registry)


@router.get("/recap")
def get_recap(
    request: Request,
    range_type: str | None = Query(None, alias="type"),
    days: str | None = None,
    unit: str | None = None,
    offset: str | None = None,
    activity_type: str | None = Query(None, alias="activityType"),
    activity_group: str | None = Query(None, alias="activityGroup"),
    service: RecapService = Depends(get_recap_service),
) -> JSONResponse:
    """
    Aggregate the connected athlete's activities for the requested window.

    Always answers 200; the payload is the recap, ``{"connected": false}``
    or an error shape carrying ``errorKind`` and ``retryable``.
    """

    query = RecapQuery(
        type=range_type or "",
        days=days,
        unit=unit,
        offset=offset,
        activity_type=activity_type,
        activity_group=activity_group,
    )
    try:
        payload = service.build_recap(credentials_from_request(request), provider_from_request(request), query)
    except ProviderFailure as failure:
        logger.warning("Recap fetch failed: %s (%s)", failure.message, failure.kind.value)
        payload = failure.to_response()
    return JSONResponse(payload, headers=NO_STORE)


@router.get("/me")
def get_me(request: Request, service: RecapService = Depends(get_recap_service)) -> JSONResponse:
    """Return the athlete profile for the connected provider."""

    payload = service.build_profile(credentials_from_request(request), provider_from_request(request))
    return JSONResponse(payload, headers=NO_STORE)
