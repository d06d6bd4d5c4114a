"""Generic JSON resource requester with retry/backoff."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from ..config import (
    INTERVALS_AUTH_USER,
    INTERVALS_BACKOFF_MAX_SECONDS,
    INTERVALS_BASE_URL,
    INTERVALS_MAX_RETRIES,
    REQUEST_TIMEOUT,
)
from ..errors import IntervalsAPIError, IntervalsDecodeError
from .rate_limiter import RateLimiter
from .response_handling import classify_response_status
from .session import get_default_session

LOGGER = logging.getLogger(__name__)

# A lost DELETE or PUT response may hide a write the server already applied.
RETRY_SAFE_METHODS = frozenset({"GET"})


class ResourceAPI:
    """Encapsulates authenticated Intervals.icu requests with retries."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = INTERVALS_BASE_URL,
        session: requests.Session | None = None,
        limiter: RateLimiter | None = None,
        timeout: int = REQUEST_TIMEOUT,
        max_retries: int = INTERVALS_MAX_RETRIES,
    ) -> None:
        self._auth: Tuple[str, str] = (INTERVALS_AUTH_USER, api_key)
        self._base_url = base_url.rstrip("/")
        self._session = session or get_default_session()
        self._limiter = limiter or RateLimiter()
        self._timeout = timeout
        self._max_retries = max(1, max_retries)

    def url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def request_json(
        self,
        method: str,
        path: str,
        context: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        expect_json: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        With ``expect_json=False`` an empty or non-JSON success body yields
        ``None`` instead of an error (PUT/DELETE responses).

        Raises:
            IntervalsAPIError: Or one of its subclasses once retries run out.
        """

        url = self.url(path)
        retry_safe = method.upper() in RETRY_SAFE_METHODS
        backoff = 1.0
        attempt = 0
        while True:
            attempt += 1
            can_retry = attempt < self._max_retries
            self._limiter.before_request()
            try:
                response = self._session.request(
                    method,
                    url,
                    auth=self._auth,
                    params=params,
                    json=json_body,
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                self._limiter.after_response(None, None)
                if can_retry and retry_safe:
                    LOGGER.warning(
                        "%s network error attempt=%s err=%s; retrying in %.1fs",
                        context,
                        attempt,
                        exc.__class__.__name__,
                        backoff,
                    )
                    time.sleep(backoff)
                    backoff = min(backoff * 2, INTERVALS_BACKOFF_MAX_SECONDS)
                    continue
                message = f"{context} network error: {exc.__class__.__name__}"
                LOGGER.error(message)
                raise IntervalsAPIError(message) from exc

            self._limiter.after_response(response.headers, response.status_code)
            action, error = classify_response_status(
                response,
                context,
                attempt=attempt,
                backoff=backoff,
                can_retry=can_retry,
                retry_server_errors=retry_safe,
            )
            if action == "retry":
                time.sleep(backoff)
                backoff = min(backoff * 2, INTERVALS_BACKOFF_MAX_SECONDS)
                continue
            if action == "raise" and error is not None:
                raise error

            if not expect_json:
                try:
                    return response.json()
                except ValueError:
                    return None
            try:
                return response.json()
            except ValueError as exc:
                if can_retry:
                    LOGGER.warning(
                        "Non-JSON response for %s attempt=%s; retrying in %.1fs",
                        context,
                        attempt,
                        backoff,
                    )
                    time.sleep(backoff)
                    backoff = min(backoff * 2, INTERVALS_BACKOFF_MAX_SECONDS)
                    continue
                message = f"{context} returned non-JSON payload"
                LOGGER.error(message)
                raise IntervalsDecodeError(message) from exc
