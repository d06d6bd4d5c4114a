"""Global pytest fixtures & helpers.

Adds project root to path and provides factories for activity summaries,
details and scoring configs so engine and service tests stay short.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from intervals_deduper.models import (
    ActivityDetail,
    ActivitySummary,
    ScoringConfig,
    Weights,
)

BASE_START = datetime(2025, 3, 1, 7, 30, 0)


# --- Factory helpers -------------------------------------------------
def make_summary(activity_id, offset_seconds=0, **overrides):
    fields = dict(
        id=activity_id,
        name="Morning Ride",
        activity_type="Ride",
        start_date_local=BASE_START + timedelta(seconds=offset_seconds),
    )
    fields.update(overrides)
    return ActivitySummary(**fields)


def make_detail(activity_id="i1", streams=(), **overrides):
    fields = dict(
        id=activity_id,
        name="Morning Ride",
        activity_type="Ride",
        start_date_local=BASE_START,
        created_at=datetime(2025, 3, 1, 9, 0, 0),
        updated_at=datetime(2025, 3, 1, 9, 0, 0),
        device_name="Garmin Edge 840",
        source="GARMIN_CONNECT",
        distance=40000.0,
        moving_time=5400,
        stream_types=frozenset(streams),
    )
    fields.update(overrides)
    return ActivityDetail(**fields)


def make_payload(activity_id="i1", **overrides):
    payload = {
        "id": activity_id,
        "name": "Fox Creek Trails",
        "type": "Ride",
        "start_date_local": "2025-03-01T07:30:00",
        "created": "2025-03-01T09:00:00Z",
        "updated": "2025-03-01T09:05:00Z",
        "device_name": "Wahoo ELEMNT BOLT",
        "source": "OAUTH_CLIENT",
        "oauth_client_id": 77,
        "oauth_client_name": "Wahoo",
        "icu_recording_seconds": 5300,
        "distance": 40123.4,
        "moving_time": 5400,
        "average_heartrate": 142.0,
        "average_power": 201.5,
        "icu_rpe": 6,
        "feel": None,
        "description": None,
        "power_meter": "Assioma DUO",
        "power_meter_serial": "A123",
        "power_meter_battery": None,
        "stream_types": ["time", "watts", "heartrate", "latlng", "cadence"],
    }
    payload.update(overrides)
    return payload


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def scoring_config():
    return ScoringConfig(
        weights=Weights(
            gps=15,
            heartrate=20,
            power=30,
            cadence=5,
            sampling_rate=10,
            rpe=5,
            manual=5,
            custom_name=5,
        ),
        device_priority=["Wahoo", "Garmin", "Zwift"],
        uploader_penalties={"RunGap": 20, "HealthFit": 10},
    )


@pytest.fixture(autouse=True)
def clear_credentials_env(monkeypatch):
    """Keep developer credentials in the shell or .env out of tests."""

    monkeypatch.delenv("INTERVALS_API_KEY", raising=False)
    monkeypatch.delenv("INTERVALS_ATHLETE_ID", raising=False)
