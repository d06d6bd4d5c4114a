"""Heuristic quality scoring for duplicate activity candidates.

Each evaluation pass is a pure function returning the :class:`ScoreEntry`
items it awards. :class:`ScoringEngine` runs the passes in a fixed order and
merges their entries into a :class:`ScoreBreakdown`; the order only affects
how the rationale reads, never the total.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from .models import ActivityDetail, ScoreBreakdown, ScoreEntry, ScoringConfig
from .naming import is_generic_name

__all__ = [
    "DEFAULT_EVALUATORS",
    "OAUTH_CLIENT_SOURCE",
    "ScoringEngine",
    "evaluate_device",
    "evaluate_interactions",
    "evaluate_name",
    "evaluate_sampling",
    "evaluate_streams",
    "evaluate_uploader",
    "system_label",
    "uploader_name",
]

LOGGER = logging.getLogger(__name__)

OAUTH_CLIENT_SOURCE = "OAUTH_CLIENT"

# Stream type -> (breakdown key, weight attribute, rationale)
_STREAM_FACTORS = (
    ("watts", "Power Stream", "power", "Contains power/watts data."),
    ("heartrate", "HeartRate Stream", "heartrate", "Contains heart rate data."),
    ("latlng", "GPS/Map Stream", "gps", "Contains GPS/latlng map data."),
    ("cadence", "Cadence Stream", "cadence", "Contains cadence data."),
)

DEVICE_PRIORITY_STEP = 2.0

Evaluator = Callable[[ActivityDetail, ScoringConfig], List[ScoreEntry]]


def uploader_name(detail: ActivityDetail) -> str:
    """Return the app that delivered the activity.

    Activities pushed through a third-party OAuth client report the generic
    ``OAUTH_CLIENT`` source; the client name is the meaningful uploader then.
    """

    if detail.source == OAUTH_CLIENT_SOURCE and detail.oauth_client_name:
        return detail.oauth_client_name
    return detail.source


def _title_uploader(detail: ActivityDetail) -> str:
    # No fallback to the source here: a blank OAuth client name matches no key.
    if detail.source == OAUTH_CLIENT_SOURCE:
        return detail.oauth_client_name
    return detail.source


def system_label(detail: ActivityDetail) -> str:
    """Human readable ``device / uploader`` label used in logs and reports."""

    uploader = uploader_name(detail)
    if (
        uploader
        and uploader != OAUTH_CLIENT_SOURCE
        and uploader.casefold() not in detail.device_name.casefold()
    ):
        return f"{detail.device_name} / {uploader}"
    return detail.device_name


def _matching_penalty_keys(uploader: str, config: ScoringConfig) -> List[str]:
    uploader = uploader.casefold()
    return [
        key for key in config.uploader_penalties if key.casefold() in uploader
    ]


def evaluate_streams(detail: ActivityDetail, config: ScoringConfig) -> List[ScoreEntry]:
    """Award the weight of each recorded power, heart rate, GPS and cadence stream."""

    entries: List[ScoreEntry] = []
    for stream, key, weight_name, reason in _STREAM_FACTORS:
        if stream in detail.stream_types:
            entries.append(
                ScoreEntry(key, getattr(config.weights, weight_name), reason)
            )
    return entries


def evaluate_sampling(detail: ActivityDetail, config: ScoringConfig) -> List[ScoreEntry]:
    """Scale the sampling weight by the share of moving time backed by samples."""

    if detail.recording_seconds <= 0 or detail.moving_time <= 0:
        return []
    # 1.0 means every second of moving time has a sample.
    rate = min(detail.recording_seconds / detail.moving_time, 1.0)
    return [
        ScoreEntry(
            "Sampling Density",
            rate * config.weights.sampling_rate,
            f"Sampling density: {rate * 100:.0f}% of moving time recorded.",
        )
    ]


def evaluate_device(detail: ActivityDetail, config: ScoringConfig) -> List[ScoreEntry]:
    """Reward the first device priority entry found in the activity's hardware fields."""

    haystack = " ".join(
        (
            detail.device_name,
            detail.source,
            detail.power_meter,
            detail.oauth_client_name,
        )
    ).casefold()
    priority = config.device_priority
    for index, preferred in enumerate(priority):
        if preferred.casefold() in haystack:
            bonus = (len(priority) - index) * DEVICE_PRIORITY_STEP
            return [
                ScoreEntry(
                    f"Device/Sensor Priority: {preferred}",
                    bonus,
                    f"Matches preferred device/sensor: {preferred}",
                )
            ]
    return []


def evaluate_interactions(
    detail: ActivityDetail, config: ScoringConfig
) -> List[ScoreEntry]:
    """Reward user input: one RPE or feel rating, and a non-blank description."""

    entries: List[ScoreEntry] = []
    if detail.rpe > 0:
        entries.append(
            ScoreEntry("RPE/Feel", config.weights.rpe, f"User provided RPE: {detail.rpe}")
        )
    elif detail.feel > 0:
        entries.append(
            ScoreEntry("RPE/Feel", config.weights.rpe, f"User provided Feel: {detail.feel}")
        )
    if detail.description.strip():
        entries.append(
            ScoreEntry(
                "Manual Description",
                config.weights.manual,
                "Activity has custom notes/description.",
            )
        )
    return entries


def evaluate_name(detail: ActivityDetail, config: ScoringConfig) -> List[ScoreEntry]:
    """Reward a non-generic title unless a penalised sync tool uploaded it."""

    if is_generic_name(detail.name, detail.activity_type):
        return []
    # Sync tools such as RunGap set automated titles; no credit for those.
    if _matching_penalty_keys(_title_uploader(detail), config):
        return []
    return [
        ScoreEntry(
            "Custom Name",
            config.weights.custom_name,
            f"Appears to have a custom name: {detail.name}",
        )
    ]


def evaluate_uploader(detail: ActivityDetail, config: ScoringConfig) -> List[ScoreEntry]:
    """Subtract the penalty of every uploader key matching the uploading app."""

    uploader = uploader_name(detail)
    return [
        ScoreEntry(
            f"Uploader Penalty: {key}",
            -config.uploader_penalties[key],
            f"Penalized for using indirect sync tool: {uploader}",
        )
        for key in _matching_penalty_keys(uploader, config)
    ]


DEFAULT_EVALUATORS: Sequence[Evaluator] = (
    evaluate_streams,
    evaluate_sampling,
    evaluate_device,
    evaluate_interactions,
    evaluate_name,
    evaluate_uploader,
)


class ScoringEngine:
    """Score activities against a :class:`ScoringConfig`."""

    def __init__(
        self,
        config: ScoringConfig,
        evaluators: Sequence[Evaluator] = DEFAULT_EVALUATORS,
    ) -> None:
        self.config = config
        self._evaluators = tuple(evaluators)

    def score(self, detail: ActivityDetail) -> ScoreBreakdown:
        card = ScoreBreakdown()
        for evaluate in self._evaluators:
            for entry in evaluate(detail, self.config):
                card.breakdown[entry.key] = entry.points
                card.reasons.append(entry.reason)
        card.total = sum(card.breakdown.values())
        LOGGER.debug(
            "Scored activity %s total=%.2f factors=%s",
            detail.id,
            card.total,
            list(card.breakdown),
        )
        return card
