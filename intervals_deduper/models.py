from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .utils import parse_timestamp


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(float(value))


def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


@dataclass(frozen=True)
class ActivitySummary:
    id: str
    name: str = ""
    activity_type: str = ""
    start_date_local: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    device_name: str = ""
    source: str = ""
    oauth_client_id: int = 0
    oauth_client_name: str = ""
    distance: float = 0.0
    moving_time: int = 0
    # Seconds of moving time backed by recorded samples
    recording_seconds: int = 0
    # 0 means "not provided" for both ratings
    rpe: int = 0
    feel: int = 0
    description: str = ""
    power_meter: str = ""
    power_meter_serial: str = ""
    power_meter_battery: str = ""
    average_heartrate: float = 0.0
    average_watts: float = 0.0

    @classmethod
    def _fields_from_api(cls, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": _as_str(payload.get("id")),
            "name": _as_str(payload.get("name")),
            "activity_type": _as_str(payload.get("type")),
            "start_date_local": parse_timestamp(payload.get("start_date_local")),
            "created_at": parse_timestamp(payload.get("created")),
            "updated_at": parse_timestamp(payload.get("updated")),
            "device_name": _as_str(payload.get("device_name")),
            "source": _as_str(payload.get("source")),
            "oauth_client_id": _as_int(payload.get("oauth_client_id")),
            "oauth_client_name": _as_str(payload.get("oauth_client_name")),
            "distance": _as_float(payload.get("distance")),
            "moving_time": _as_int(payload.get("moving_time")),
            "recording_seconds": _as_int(payload.get("icu_recording_seconds")),
            "rpe": _as_int(payload.get("icu_rpe")),
            "feel": _as_int(payload.get("feel")),
            "description": _as_str(payload.get("description")),
            "power_meter": _as_str(payload.get("power_meter")),
            "power_meter_serial": _as_str(payload.get("power_meter_serial")),
            "power_meter_battery": _as_str(payload.get("power_meter_battery")),
            "average_heartrate": _as_float(payload.get("average_heartrate")),
            "average_watts": _as_float(payload.get("average_power")),
        }

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ActivitySummary":
        """Build a summary from an ``/athlete/{id}/activities`` list entry.

        Raises:
            ValueError: When a timestamp or numeric field cannot be parsed.
        """

        return cls(**cls._fields_from_api(payload))


@dataclass(frozen=True)
class ActivityDetail(ActivitySummary):
    stream_types: frozenset[str] = frozenset()

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ActivityDetail":
        streams = payload.get("stream_types") or ()
        return cls(
            **cls._fields_from_api(payload),
            stream_types=frozenset(str(s) for s in streams),
        )


@dataclass
class Weights:
    gps: float = 0.0
    heartrate: float = 0.0
    power: float = 0.0
    cadence: float = 0.0
    sampling_rate: float = 0.0
    # Bonus for presence of RPE or Feel
    rpe: float = 0.0
    # Bonus for notes/description
    manual: float = 0.0
    # Bonus for non-generic names
    custom_name: float = 0.0


@dataclass
class ScoringConfig:
    weights: Weights = field(default_factory=Weights)
    # Earlier entries are preferred
    device_priority: List[str] = field(default_factory=list)
    # Uploader substring -> penalty magnitude (positive number)
    uploader_penalties: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoreEntry:
    key: str
    points: float
    reason: str


@dataclass
class ScoreBreakdown:
    total: float = 0.0
    breakdown: Dict[str, float] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScoredActivity:
    detail: ActivityDetail
    score: ScoreBreakdown


@dataclass(frozen=True)
class LoserVerdict:
    detail: ActivityDetail
    score: ScoreBreakdown
    distance_mismatch: bool = False
    duration_mismatch: bool = False

    @property
    def size_mismatch(self) -> bool:
        """True when the loser is unsafe to delete automatically."""

        return self.distance_mismatch or self.duration_mismatch


@dataclass(frozen=True)
class ResolutionDecision:
    winner: ScoredActivity
    losers: Tuple[LoserVerdict, ...]
    name_adoption: Optional[str] = None
    metadata_updates: Dict[str, Any] = field(default_factory=dict)
    metadata_reasons: Tuple[str, ...] = ()

    @property
    def deletable(self) -> Tuple[LoserVerdict, ...]:
        return tuple(loser for loser in self.losers if not loser.size_mismatch)


Cluster = Tuple[ActivitySummary, ...]
