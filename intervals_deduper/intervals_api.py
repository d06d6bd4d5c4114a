"""Intervals.icu API facade used by the orchestration layer.

Public surface:
- IntervalsClient(api_key, athlete_id): list/get/update/delete activities
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Mapping

import requests

from .config import INTERVALS_BASE_URL
from .intervals_client import ActivitiesAPI, RateLimiter, ResourceAPI
from .intervals_client.session import get_default_session
from .models import ActivityDetail, ActivitySummary


class IntervalsClient:
    """Facade over the modular client components for one athlete."""

    def __init__(
        self,
        api_key: str,
        athlete_id: str,
        *,
        base_url: str = INTERVALS_BASE_URL,
        session: requests.Session | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.athlete_id = athlete_id
        self._session = session or get_default_session()
        self._limiter = limiter or RateLimiter()
        self._resources = ResourceAPI(
            api_key,
            base_url=base_url,
            session=self._session,
            limiter=self._limiter,
        )
        self._activities = ActivitiesAPI(self._resources, athlete_id)

    def list_activities(
        self, oldest: date | datetime, newest: date | datetime
    ) -> List[ActivitySummary]:
        return self._activities.list_activities(oldest, newest)

    def get_activity_detail(self, activity_id: str) -> ActivityDetail:
        return self._activities.get_activity_detail(activity_id)

    def update_activity(self, activity_id: str, updates: Mapping[str, Any]) -> None:
        self._activities.update_activity(activity_id, updates)

    def delete_activity(self, activity_id: str) -> None:
        self._activities.delete_activity(activity_id)


__all__ = ["IntervalsClient"]
