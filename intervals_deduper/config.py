"""Central configuration for the Intervals.icu duplicate cleaner.

Runtime knobs are constants imported by the rest of the package. Adjust as
needed for your environment. Secrets are read from environment variables
(optionally via a local `.env`). Scoring weights, the device priority list and
uploader penalties live in a YAML file loaded with :func:`load_config`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import ScoringConfig, Weights

LOGGER = logging.getLogger(__name__)


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------
# YAML file holding credentials and scoring weights. Path can be relative.
CONFIG_FILE = os.getenv("INTERVALS_CONFIG_FILE", "config.yml")

# Look-back window used when neither the CLI nor the YAML file sets one.
DEFAULT_DAYS_TO_SYNC = 30


# ---------------------------------------------------------------------------
# Intervals.icu settings
# ---------------------------------------------------------------------------
INTERVALS_BASE_URL = os.getenv("INTERVALS_BASE_URL", "https://intervals.icu")

# Basic-auth user name expected by Intervals.icu alongside the API key.
INTERVALS_AUTH_USER = "API_KEY"

# Credentials pulled from the environment. They override the YAML values.
API_KEY_ENV = "INTERVALS_API_KEY"
ATHLETE_ID_ENV = "INTERVALS_ATHLETE_ID"


# ---------------------------------------------------------------------------
# Performance tuning
# ---------------------------------------------------------------------------
# Threads used per cluster when fetching activity details in parallel.
MAX_WORKERS = _env_int("MAX_WORKERS", 4)

# HTTP session pool sizes for concurrent requests.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Request timeout in seconds.
REQUEST_TIMEOUT = _env_int("REQUEST_TIMEOUT", 30)

# Rate limiter settings.
# RATE_LIMIT_MAX_CONCURRENT caps total in-flight requests.
RATE_LIMIT_MAX_CONCURRENT = _env_int("RATE_LIMIT_MAX_CONCURRENT", 4)
# RATE_LIMIT_JITTER_RANGE adds random delay (seconds) to smooth bursts.
RATE_LIMIT_JITTER_RANGE = (0.0, 0.05)
# RATE_LIMIT_THROTTLE_SECONDS is the pause applied on 429s without Retry-After.
RATE_LIMIT_THROTTLE_SECONDS = _env_float("RATE_LIMIT_THROTTLE_SECONDS", 10.0)

# Retry/backoff behaviour for the API request loop.
# INTERVALS_MAX_RETRIES covers network failures, 429, 5xx, or bad payloads.
INTERVALS_MAX_RETRIES = _env_int("INTERVALS_MAX_RETRIES", 3)
# INTERVALS_BACKOFF_MAX_SECONDS caps the exponential backoff per attempt.
INTERVALS_BACKOFF_MAX_SECONDS = _env_float("INTERVALS_BACKOFF_MAX_SECONDS", 4.0)

# Activity detail cache (used by --dump and cluster resolution).
DETAIL_CACHE_SIZE = _env_int("DETAIL_CACHE_SIZE", 512)
DETAIL_CACHE_TTL_SECONDS = _env_int("DETAIL_CACHE_TTL_SECONDS", 900)


# ---------------------------------------------------------------------------
# YAML configuration
# ---------------------------------------------------------------------------
@dataclass
class AppConfig:
    api_key: str
    athlete_id: str
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    days_to_sync: int = 0


def _coerce_number(section: str, key: str, value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}") from exc


def _parse_weights(raw: Any) -> Weights:
    if raw is None:
        return Weights()
    if not isinstance(raw, Mapping):
        raise ConfigError("weights must be a mapping")
    known = set(Weights.__dataclass_fields__)
    values: Dict[str, float] = {}
    for key, value in raw.items():
        name = str(key)
        if name not in known:
            LOGGER.warning("Ignoring unknown weight %r", name)
            continue
        values[name] = _coerce_number("weights", name, value)
    return Weights(**values)


def _parse_device_priority(raw: Any) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("device_priority must be a list")
    # Blank entries would match every activity.
    return [str(item).strip() for item in raw if item is not None and str(item).strip()]


def _parse_penalties(raw: Any) -> Dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError("uploader_penalties must be a mapping")
    penalties: Dict[str, float] = {}
    for key, value in raw.items():
        name = str(key).strip()
        if not name:
            continue
        penalties[name] = _coerce_number("uploader_penalties", name, value)
    return penalties


def parse_config(data: Mapping[str, Any]) -> AppConfig:
    """Validate a decoded YAML document and apply environment overrides."""

    if not isinstance(data, Mapping):
        raise ConfigError("configuration root must be a mapping")

    api_key = os.getenv(API_KEY_ENV) or str(data.get("api_key") or "")
    athlete_id = os.getenv(ATHLETE_ID_ENV) or str(data.get("athlete_id") or "")
    if not api_key or not athlete_id:
        raise ConfigError("API key or Athlete ID missing from config and environment")

    try:
        days = int(data.get("days_to_sync") or 0)
    except (TypeError, ValueError) as exc:
        raise ConfigError("days_to_sync must be an integer") from exc

    scoring = ScoringConfig(
        weights=_parse_weights(data.get("weights")),
        device_priority=_parse_device_priority(data.get("device_priority")),
        uploader_penalties=_parse_penalties(data.get("uploader_penalties")),
    )
    return AppConfig(
        api_key=api_key,
        athlete_id=athlete_id,
        scoring=scoring,
        days_to_sync=max(days, 0),
    )


def load_config(path: str | Path = CONFIG_FILE) -> AppConfig:
    """Read and validate the YAML configuration file at ``path``."""

    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(
            f"config file {config_path} not found. Please create it from config.example.yml"
        )
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"config file {config_path} is not valid YAML: {exc}") from exc
    config = parse_config(data)
    LOGGER.debug(
        "Loaded config from %s (devices=%d, penalties=%d)",
        config_path,
        len(config.scoring.device_priority),
        len(config.scoring.uploader_penalties),
    )
    return config
