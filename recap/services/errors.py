"""Failure taxonomy shared by every provider client."""
from __future__ import annotations

from enum import Enum
from typing import Any

from recap.models.domain import RateLimitInfo


class FailureKind(str, Enum):
    AUTH_EXPIRED = "auth_expired"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNEXPECTED_ERROR = "unexpected_error"


class ProviderFailure(Exception):
    """Base class for a failed provider fetch.

    A fetch either returns every page or raises exactly one of the subclasses
    below; activities from earlier pages are never attached.
    """

    kind: FailureKind = FailureKind.UNEXPECTED_ERROR
    default_message = "Unexpected error fetching activities"
    default_status_code = 500
    retryable = True

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        rate_limit: RateLimitInfo | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.rate_limit = rate_limit
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        """Outbound error shape consumed by the recap client."""
        return {
            "connected": True,
            "error": self.message,
            "errorKind": self.kind.value,
            "retryable": self.retryable,
            "rateLimit": self.rate_limit.to_dict() if self.rate_limit else None,
        }


class AuthExpired(ProviderFailure):
    kind = FailureKind.AUTH_EXPIRED
    default_message = "Token invalid or expired"
    default_status_code = 401
    retryable = False

    def to_response(self) -> dict[str, Any]:
        # An expired token means the athlete has to reconnect.
        return {"connected": False}


class InsufficientScope(ProviderFailure):
    kind = FailureKind.INSUFFICIENT_SCOPE
    default_message = "Missing required scopes"
    default_status_code = 403
    retryable = False


class RateLimited(ProviderFailure):
    kind = FailureKind.RATE_LIMITED
    default_message = "Rate limit exceeded"
    default_status_code = 429


class ProviderError(ProviderFailure):
    kind = FailureKind.PROVIDER_ERROR
    default_message = "Provider API error"
    default_status_code = 502


class NetworkError(ProviderFailure):
    kind = FailureKind.NETWORK_ERROR
    default_message = "Network error communicating with provider"
    default_status_code = 502


class ProviderTimeout(ProviderFailure):
    kind = FailureKind.TIMEOUT
    default_message = "Request timed out"
    default_status_code = 504


class UnexpectedError(ProviderFailure):
    kind = FailureKind.UNEXPECTED_ERROR


class ProviderNotRegistered(LookupError):
    """A known provider identifier has no client wired at startup."""
