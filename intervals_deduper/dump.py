"""Export full activity details to JSON for offline inspection."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Sequence

from .errors import IntervalsAPIError
from .models import ActivityDetail, ActivitySummary
from .services.dedupe_service import ActivityClient
from .utils import to_jsonable

LOGGER = logging.getLogger(__name__)


def dump_activity_details(
    client: ActivityClient,
    activities: Sequence[ActivitySummary],
    path: str | Path,
) -> int:
    """Fetch details for ``activities`` and write them to ``path``.

    Activities whose detail fetch fails are logged and left out. Returns the
    number of records written.
    """

    LOGGER.info("Fetching details for %d activities and saving to %s", len(activities), path)
    details: List[ActivityDetail] = []
    for index, activity in enumerate(activities, start=1):
        LOGGER.debug("[%d/%d] Fetching %s", index, len(activities), activity.id)
        try:
            details.append(client.get_activity_detail(activity.id))
        except IntervalsAPIError as exc:
            LOGGER.warning("Failed to fetch details for %s: %s", activity.id, exc)

    target = Path(path)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(to_jsonable(details), handle, indent=2)
        handle.write("\n")
    LOGGER.info("Wrote %d activity details to %s", len(details), target)
    return len(details)


__all__ = ["dump_activity_details"]
