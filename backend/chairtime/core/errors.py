"""
Centralized error handling for availability pulls.
Exception types for provider and persistence failures, plus a reusable helper so
routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

import json
from typing import Callable

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Exception types
# ---------------------------------------------------------------------------


class AvailabilityError(Exception):
    """Base for errors raised by the availability engine."""


class ProviderError(AvailabilityError):
    """A scheduling provider could not return data (network, auth, rate limit, bad config)."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class ProviderTimeoutError(ProviderError):
    """Adapter call exceeded the per-provider deadline."""


class PersistenceError(AvailabilityError):
    """Upsert or cleanup failed; the provider's in-memory result is discarded."""


# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_SERVICE_UNAVAILABLE = 503  # provider rate limit / quota
STATUS_INTERNAL_ERROR = 500

MSG_RATE_LIMITED = "Booking provider rate limit reached. Try again in a few minutes."


def format_error_message(exc: object) -> str:
    """Short message for per-source error lists."""
    if isinstance(exc, BaseException):
        return str(exc) or exc.__class__.__name__
    if isinstance(exc, str):
        return exc
    try:
        return json.dumps(exc)
    except (TypeError, ValueError):
        return str(exc)


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail_message)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _is_rate_limit_error(msg: str) -> bool:
    lower = msg.lower()
    return "429" in msg or "rate limit" in lower or "too many requests" in lower


# List of (predicate, status_code, detail). First match wins.
PULL_ERROR_RULES: list[tuple[Callable[[str], bool], int, str]] = [
    (_is_rate_limit_error, STATUS_SERVICE_UNAVAILABLE, MSG_RATE_LIMITED),
]


def pull_error_to_http(exc: Exception) -> HTTPException:
    """
    Map a call-level exception from pull_availability into an HTTPException.
    Uses PULL_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    msg = str(exc)
    for predicate, status_code, detail in PULL_ERROR_RULES:
        if predicate(msg):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(
        status_code=STATUS_INTERNAL_ERROR,
        detail={"error": "Availability pull failed", "details": msg},
    )
