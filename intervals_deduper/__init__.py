"""Intervals.icu duplicate activity cleaner."""

__version__ = "0.1.0"

from .main import main  # noqa: E402
from .models import (  # noqa: E402
    ActivityDetail,
    ActivitySummary,
    ResolutionDecision,
    ScoreBreakdown,
)
from .errors import ConfigError, IntervalsAPIError  # noqa: E402

__all__ = [
    "__version__",
    "main",
    "ActivityDetail",
    "ActivitySummary",
    "ResolutionDecision",
    "ScoreBreakdown",
    "ConfigError",
    "IntervalsAPIError",
]
