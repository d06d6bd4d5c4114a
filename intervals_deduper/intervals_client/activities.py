"""Typed activity operations on top of :class:`ResourceAPI`."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from typing import Any, List, Mapping

from cachetools import TTLCache

from ..config import DETAIL_CACHE_SIZE, DETAIL_CACHE_TTL_SECONDS
from ..errors import IntervalsDecodeError
from ..models import ActivityDetail, ActivitySummary
from .resources import ResourceAPI

LOGGER = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def _format_day(value: date | datetime) -> str:
    return value.strftime(DATE_FORMAT)


class ActivitiesAPI:
    """List, fetch, update and delete activities for one athlete."""

    def __init__(
        self,
        resources: ResourceAPI,
        athlete_id: str,
        *,
        cache_size: int = DETAIL_CACHE_SIZE,
        cache_ttl: int = DETAIL_CACHE_TTL_SECONDS,
    ) -> None:
        self._resources = resources
        self._athlete_id = athlete_id
        self._cache_lock = threading.Lock()
        # Details are fetched once per run for --dump and again per cluster.
        self._detail_cache: TTLCache[str, ActivityDetail] = TTLCache(
            maxsize=max(1, cache_size), ttl=max(1, cache_ttl)
        )

    def list_activities(
        self, oldest: date | datetime, newest: date | datetime
    ) -> List[ActivitySummary]:
        """Return activity summaries between two days (inclusive)."""

        path = f"/api/v1/athlete/{self._athlete_id}/activities"
        params = {"oldest": _format_day(oldest), "newest": _format_day(newest)}
        payload = self._resources.request_json(
            "GET", path, "activities", params=params
        )
        if not isinstance(payload, list):
            raise IntervalsDecodeError(
                f"activities returned {type(payload).__name__}, expected a list"
            )
        summaries: List[ActivitySummary] = []
        for item in payload:
            summaries.append(self._decode(ActivitySummary, item, "activities"))
        LOGGER.debug(
            "Listed %d activities between %s and %s",
            len(summaries),
            params["oldest"],
            params["newest"],
        )
        return summaries

    def get_activity_detail(self, activity_id: str) -> ActivityDetail:
        with self._cache_lock:
            cached = self._detail_cache.get(activity_id)
        if cached is not None:
            LOGGER.debug("Cache hit for activity %s", activity_id)
            return cached
        context = f"activity {activity_id}"
        payload = self._resources.request_json(
            "GET", f"/api/v1/activity/{activity_id}", context
        )
        detail = self._decode(ActivityDetail, payload, context)
        with self._cache_lock:
            self._detail_cache[activity_id] = detail
        return detail

    def update_activity(self, activity_id: str, updates: Mapping[str, Any]) -> None:
        self._resources.request_json(
            "PUT",
            f"/api/v1/activity/{activity_id}",
            f"update activity {activity_id}",
            json_body=dict(updates),
            expect_json=False,
        )
        self._evict(activity_id)

    def delete_activity(self, activity_id: str) -> None:
        self._resources.request_json(
            "DELETE",
            f"/api/v1/activity/{activity_id}",
            f"delete activity {activity_id}",
            expect_json=False,
        )
        self._evict(activity_id)

    def _evict(self, activity_id: str) -> None:
        with self._cache_lock:
            self._detail_cache.pop(activity_id, None)

    @staticmethod
    def _decode(model: Any, payload: Any, context: str) -> Any:
        if not isinstance(payload, dict):
            raise IntervalsDecodeError(
                f"{context} returned {type(payload).__name__}, expected an object"
            )
        try:
            return model.from_api(payload)
        except (TypeError, ValueError) as exc:
            raise IntervalsDecodeError(f"{context} payload could not be parsed: {exc}") from exc


__all__ = ["ActivitiesAPI", "DATE_FORMAT"]
