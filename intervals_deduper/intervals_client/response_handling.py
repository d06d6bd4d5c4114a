"""Shared HTTP response helpers for Intervals.icu API interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..errors import (
    IntervalsAPIError,
    IntervalsPermissionError,
    IntervalsResourceNotFoundError,
)

__all__ = [
    "classify_response_status",
    "extract_error",
]

LOGGER = logging.getLogger(__name__)


def classify_response_status(
    response: requests.Response,
    context: str,
    *,
    attempt: int,
    backoff: float,
    can_retry: bool,
    retry_server_errors: bool = True,
) -> Tuple[str, Optional[Exception]]:
    """Return action for a response status: ok, retry, or raise.

    429 is always retryable; 5xx only when ``retry_server_errors`` is set.
    """

    status = response.status_code
    if 200 <= status < 300:
        return "ok", None

    detail = extract_error(response)

    def with_detail(message: str) -> str:
        return f"{message} | {detail}" if detail else message

    if status == 429 and can_retry:
        LOGGER.warning(
            "%s rate limited (429) attempt=%s; retrying in %.1fs",
            context,
            attempt,
            backoff,
        )
        return "retry", None

    if status in (401, 403):
        message = with_detail(f"{context} forbidden (status {status}); check API key and athlete ID")
        LOGGER.warning(message)
        return "raise", IntervalsPermissionError(message)

    if status == 404:
        message = with_detail(f"{context} not found")
        LOGGER.info(message)
        return "raise", IntervalsResourceNotFoundError(message)

    if 500 <= status < 600 and can_retry and retry_server_errors:
        message = with_detail(f"{context} server error {status}")
        LOGGER.warning("%s; retrying in %.1fs", message, backoff)
        return "retry", None

    message = with_detail(f"{context} request failed (status {status})")
    LOGGER.error(message)
    return "raise", IntervalsAPIError(message)


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with the API error info if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except ValueError as exc:
        LOGGER.debug("Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc)
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from an Intervals.icu (Spring style) error body."""

    parts: List[str] = []
    for key in ("error", "message", "detail"):
        value = data.get(key)
        if value and str(value) not in parts:
            parts.append(str(value))
    return parts
