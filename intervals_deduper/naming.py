"""Activity title heuristics: generic-name detection and best-name ranking."""

from __future__ import annotations

from typing import Iterable

__all__ = ["TIME_OF_DAY_KEYWORDS", "is_generic_name", "rank_candidate_names"]

TIME_OF_DAY_KEYWORDS = ("morning", "afternoon", "evening", "night", "lunch")

# Titles that never describe a specific workout, whatever the activity type.
GENERIC_NOUNS = frozenset({"cycling", "ride", "workout"})

# Nouns that apps pair with a time of day regardless of the activity type
# (e.g. type VirtualRide titled "Morning Ride").
_GENERIC_SUFFIXES = ("ride", "workout")

RICH_PATTERN = " - "
RICH_PATTERN_BONUS = 100.0
LENGTH_BONUS_PER_CHAR = 0.1
TIME_OF_DAY_PENALTY = 10.0


def is_generic_name(name: str, activity_type: str) -> bool:
    """Return ``True`` when ``name`` carries no workout-specific information.

    Comparison is case-insensitive and ignores surrounding whitespace, so
    ``" Morning Ride "`` and ``"morning ride"`` classify the same way.
    """

    title = (name or "").strip().casefold()
    if not title or title == "untitled":
        return True

    kind = (activity_type or "").strip().casefold()
    if title == kind or title in GENERIC_NOUNS:
        return True

    for time_of_day in TIME_OF_DAY_KEYWORDS:
        if kind and title == f"{time_of_day} {kind}":
            return True
        for suffix in _GENERIC_SUFFIXES:
            if title == f"{time_of_day} {suffix}":
                return True
    return False


def _name_score(name: str) -> float:
    score = 1.0
    if RICH_PATTERN in name:
        score += RICH_PATTERN_BONUS
    score += len(name) * LENGTH_BONUS_PER_CHAR
    if name.casefold().startswith(TIME_OF_DAY_KEYWORDS):
        score -= TIME_OF_DAY_PENALTY
    return score


def rank_candidate_names(names: Iterable[str], activity_type: str) -> str:
    """Pick the most descriptive non-generic title, or ``""`` when none qualifies.

    ``"Place - Landmark"`` titles dominate, longer titles beat shorter ones,
    and titles opening with a time of day are demoted. The first candidate
    wins ties.
    """

    best_name = ""
    best_score: float | None = None
    for name in names:
        if is_generic_name(name, activity_type):
            continue
        score = _name_score(name)
        if best_score is None or score > best_score:
            best_score = score
            best_name = name
    return best_name
