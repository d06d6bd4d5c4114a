"""Central error types used across the application."""

from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when the YAML configuration is missing, incomplete, or malformed."""


class IntervalsAPIError(RuntimeError):
    """Base error for Intervals.icu API failures."""


class IntervalsPermissionError(IntervalsAPIError):
    """Raised when the API rejects the API key or athlete ID."""


class IntervalsResourceNotFoundError(IntervalsAPIError):
    """Raised when an athlete or activity does not exist."""


class IntervalsDecodeError(IntervalsAPIError):
    """Raised when a response body cannot be decoded into the activity model."""


__all__ = [
    "ConfigError",
    "IntervalsAPIError",
    "IntervalsPermissionError",
    "IntervalsResourceNotFoundError",
    "IntervalsDecodeError",
]
