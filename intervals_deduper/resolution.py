"""Pick a winner for one duplicate cluster and propose what it should inherit.

Nothing here talks to the API: :func:`resolve_cluster` only computes a
:class:`ResolutionDecision`. Applying it (renaming, merging metadata,
deleting losers) is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import (
    ActivityDetail,
    LoserVerdict,
    ResolutionDecision,
    ScoredActivity,
)
from .naming import is_generic_name, rank_candidate_names
from .scoring import ScoringEngine
from .utils import to_utc_aware

__all__ = [
    "DISTANCE_MISMATCH_RATIO",
    "DURATION_MISMATCH_RATIO",
    "rank_scored",
    "resolve_cluster",
    "size_mismatch",
]

DISTANCE_MISMATCH_RATIO = 0.5
DURATION_MISMATCH_RATIO = 0.25

# Intervals.icu field names used in the metadata update payload.
FEEL_FIELD = "feel"
RPE_FIELD = "icu_rpe"
DESCRIPTION_FIELD = "description"


@dataclass
class _WinnerFields:
    """Mutable copy of the winner fields a merge may fill, scoped to one call."""

    feel: int
    rpe: int
    description: str


def _rank_key(item: ScoredActivity) -> Tuple[float, Any, Any]:
    return (
        item.score.total,
        to_utc_aware(item.detail.updated_at),
        to_utc_aware(item.detail.created_at),
    )


def rank_scored(items: Sequence[ScoredActivity]) -> List[ScoredActivity]:
    """Order by score, then most recently updated, then most recently created."""

    return sorted(items, key=_rank_key, reverse=True)


def size_mismatch(winner: ActivityDetail, loser: ActivityDetail) -> Tuple[bool, bool]:
    """Return ``(distance_mismatch, duration_mismatch)`` for ``loser``."""

    dist_diff = abs(winner.distance - loser.distance) / max(winner.distance, 1.0)
    time_diff = abs(winner.moving_time - loser.moving_time) / max(
        float(winner.moving_time), 1.0
    )
    return dist_diff > DISTANCE_MISMATCH_RATIO, time_diff > DURATION_MISMATCH_RATIO


def _propose_name(winner: ActivityDetail, losers: Sequence[ActivityDetail]) -> Optional[str]:
    if not is_generic_name(winner.name, winner.activity_type):
        return None
    best = rank_candidate_names((d.name for d in losers), winner.activity_type)
    return best or None


def _propose_metadata(
    winner: ActivityDetail, losers: Sequence[ActivityDetail]
) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
    working = _WinnerFields(
        feel=winner.feel, rpe=winner.rpe, description=winner.description
    )
    updates: Dict[str, Any] = {}
    reasons: List[str] = []
    for loser in losers:
        if working.feel == 0 and loser.feel > 0:
            updates[FEEL_FIELD] = loser.feel
            reasons.append(f"Feel: {loser.feel}")
            working.feel = loser.feel
        if working.rpe == 0 and loser.rpe > 0:
            updates[RPE_FIELD] = loser.rpe
            reasons.append(f"RPE: {loser.rpe}")
            working.rpe = loser.rpe
        description = loser.description.strip()
        if not working.description.strip() and description:
            updates[DESCRIPTION_FIELD] = description
            reasons.append("Description")
            working.description = description
    return updates, tuple(reasons)


def resolve_cluster(
    details: Sequence[ActivityDetail], engine: ScoringEngine
) -> ResolutionDecision:
    """Score ``details``, pick a winner and propose name/metadata adoption.

    Raises:
        ValueError: If fewer than two details are given. Single activities
            are never duplicates and callers must filter them out.
    """

    if len(details) < 2:
        raise ValueError(
            f"resolve_cluster requires at least 2 activities, got {len(details)}"
        )

    ranked = rank_scored([ScoredActivity(d, engine.score(d)) for d in details])
    winner, losers = ranked[0], ranked[1:]
    loser_details = [item.detail for item in losers]

    verdicts = []
    for item in losers:
        dist_flag, time_flag = size_mismatch(winner.detail, item.detail)
        verdicts.append(
            LoserVerdict(
                detail=item.detail,
                score=item.score,
                distance_mismatch=dist_flag,
                duration_mismatch=time_flag,
            )
        )

    updates, reasons = _propose_metadata(winner.detail, loser_details)
    return ResolutionDecision(
        winner=winner,
        losers=tuple(verdicts),
        name_adoption=_propose_name(winner.detail, loser_details),
        metadata_updates=updates,
        metadata_reasons=reasons,
    )
