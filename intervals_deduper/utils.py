"""General utility helpers shared across modules."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an Intervals.icu ISO-8601 timestamp.

    The API mixes RFC 3339 values (``2023-10-12T14:15:04Z``) with local
    timestamps that carry no offset (``2023-10-12T14:15:04``). Both are
    accepted; offset-less values stay naive.

    Raises:
        ValueError: When ``value`` is a non-empty string that is not ISO-8601.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    raw = str(value).strip()
    if not raw or raw == "null":
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"could not parse time {value!r}") from exc


def to_utc_aware(value: datetime | None) -> datetime:
    """Return ``value`` as an aware UTC datetime; ``None`` sorts as the oldest."""

    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_duration(seconds: int) -> str:
    """Format seconds into ``Xh MMm SSs`` (or ``Mm SSs`` under an hour)."""

    hours, rem = divmod(int(seconds), 3600)
    mins, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}h {mins:02d}m {secs:02d}s"
    return f"{mins}m {secs:02d}s"


def format_distance(meters: float) -> str:
    return f"{meters / 1000.0:.1f}km"


def to_jsonable(value: Any) -> Any:
    """Convert objects (dataclasses included) to JSON-friendly representations."""

    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_jsonable(val) for key, val in value.items()}
    return value
