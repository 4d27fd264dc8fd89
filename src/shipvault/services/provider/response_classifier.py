"""Classification of provider responses.

The provider signals quota exhaustion two ways: HTTP 429, or an error
envelope ``{"meta": {"status": "error", "message": "..."}}`` whose message
mentions a limit. Both move the client to the next credential.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from shipvault.shared.constants import HTTPStatusCodes, ResponseMarkers


class ResponseClass(str, Enum):
    """Outcome of one upstream attempt."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


def extract_meta(body: Any) -> dict[str, Any] | None:
    """Return the ``meta`` block of a response body, if it has one."""
    if not isinstance(body, dict):
        return None
    meta = body.get(ResponseMarkers.META)
    return meta if isinstance(meta, dict) else None


def is_error_envelope(body: Any) -> bool:
    """True if the body carries ``meta.status == "error"``."""
    meta = extract_meta(body)
    if meta is None:
        return False
    status = meta.get(ResponseMarkers.STATUS)
    return isinstance(status, str) and status.lower() == ResponseMarkers.ERROR_STATUS


def envelope_message(body: Any) -> str:
    """Return ``meta.message`` as a string (empty when absent)."""
    meta = extract_meta(body)
    if meta is None:
        return ""
    message = meta.get(ResponseMarkers.MESSAGE)
    return str(message) if message is not None else ""


def mentions_rate_limit(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in ResponseMarkers.RATE_LIMIT_KEYWORDS)


def classify_response(status: int, body: Any) -> ResponseClass:
    """Classify one HTTP response from the provider.

    Rules, in order:
        1. 429 is rate-limited.
        2. An error envelope whose message contains limit, quota, exceeded
           or rate (case-insensitive) is rate-limited, whatever the status.
        3. Any other non-2xx status is failed.
        4. Everything else is success, including 2xx error envelopes that
           do not mention a limit (those are the caller's to interpret).

    Args:
        status: HTTP status code
        body: Decoded JSON body, or None if the body was not JSON

    Returns:
        The response class
    """
    if status == HTTPStatusCodes.TOO_MANY_REQUESTS:
        return ResponseClass.RATE_LIMITED

    if is_error_envelope(body) and mentions_rate_limit(envelope_message(body)):
        return ResponseClass.RATE_LIMITED

    if not HTTPStatusCodes.is_success(status):
        return ResponseClass.FAILED

    return ResponseClass.SUCCESS
