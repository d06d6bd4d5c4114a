"""Group activity summaries whose start times nearly coincide."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .models import ActivitySummary, Cluster
from .utils import to_utc_aware

__all__ = ["CLUSTER_WINDOW_SECONDS", "build_clusters", "dedupe_by_id", "sort_by_start"]

LOGGER = logging.getLogger(__name__)

# Maximum start-time distance from the group's first activity.
CLUSTER_WINDOW_SECONDS = 30.0


def dedupe_by_id(activities: Iterable[ActivitySummary]) -> List[ActivitySummary]:
    """Return activities de-duplicated by ID while preserving order."""

    merged: List[ActivitySummary] = []
    seen: set[str] = set()
    for activity in activities:
        if activity.id in seen:
            continue
        seen.add(activity.id)
        merged.append(activity)
    return merged


def sort_by_start(activities: Iterable[ActivitySummary]) -> List[ActivitySummary]:
    """Sort ascending by local start time, dropping activities without one."""

    dated: List[ActivitySummary] = []
    for activity in activities:
        if activity.start_date_local is None:
            LOGGER.debug("Ignoring activity %s without start time", activity.id)
            continue
        dated.append(activity)
    return sorted(dated, key=lambda a: to_utc_aware(a.start_date_local))


def _seconds_apart(a: ActivitySummary, b: ActivitySummary) -> float:
    delta = to_utc_aware(a.start_date_local) - to_utc_aware(b.start_date_local)
    return abs(delta.total_seconds())


def build_clusters(
    activities: Sequence[ActivitySummary],
    window_seconds: float = CLUSTER_WINDOW_SECONDS,
) -> List[Cluster]:
    """Split start-sorted ``activities`` into suspected duplicate clusters.

    The window is anchored on each group's first activity rather than sliding
    with the previous one: ``t0, t0+20s, t0+45s`` yields ``[t0, t0+20s]`` and
    starts a new group at ``t0+45s``. Groups of one are never emitted. The
    input must already be sorted (see :func:`sort_by_start`).
    """

    clusters: List[Cluster] = []
    if not activities:
        return clusters

    current: List[ActivitySummary] = [activities[0]]
    for activity in activities[1:]:
        if _seconds_apart(activity, current[0]) <= window_seconds:
            current.append(activity)
            continue
        if len(current) > 1:
            clusters.append(tuple(current))
        current = [activity]
    if len(current) > 1:
        clusters.append(tuple(current))
    return clusters
