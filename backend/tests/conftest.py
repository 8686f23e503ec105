"""
conftest.py — Shared pytest fixtures for the TimeFlow analytics test suite.

Engine tests are pure unit tests over hand-built records. API tests run
against an in-memory SQLite database wired in through ``get_db``.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``timeflow.*`` imports resolve correctly regardless of where pytest is
    invoked. The environment is pinned before any settings are read.
"""

import itertools
import os
import sys
from datetime import date, datetime, timedelta

import pytest
from dateutil import tz

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ANOMALY_SCAN_ENABLED"] = "false"
os.environ["ANALYTICS_TIMEZONE"] = "UTC"

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from timeflow.services.records import (  # noqa: E402
    AbsenceRecord,
    IncidentRecord,
    ShiftRecord,
    TimeEventRecord,
    WorkSessionRecord,
)

UTC = tz.UTC
_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

def at(year, month, day, hour=9, minute=0, second=0):
    """UTC timestamp."""
    return datetime(year, month, day, hour, minute, second, tzinfo=UTC)


def event(user_id, when, event_type="clock_in", lat=None, lng=None):
    return TimeEventRecord(
        id=f"evt-{next(_ids):05d}",
        user_id=user_id,
        event_type=event_type,
        event_time=when,
        latitude=lat,
        longitude=lng,
    )


def session(user_id, clock_in, hours=8.0, pause_minutes=0, open_=False):
    return WorkSessionRecord(
        user_id=user_id,
        clock_in_time=clock_in,
        clock_out_time=None if open_ else clock_in + timedelta(hours=hours + pause_minutes / 60),
        total_pause_duration=pause_minutes * 60_000 if pause_minutes else None,
    )


def shift(user_id, day, expected_hours=8.0, start="09:00", end="17:00"):
    return ShiftRecord(user_id=user_id, date=day, expected_hours=expected_hours, start_time=start, end_time=end)


def absence(user_id, start, end, status="approved"):
    return AbsenceRecord(user_id=user_id, start_date=start, end_date=end, status=status)


def incident(user_id, created_at, status="resolved"):
    return IncidentRecord(id=f"inc-{next(_ids):05d}", user_id=user_id, type="late_arrival", status=status, created_at=created_at)


def weekdays(year, month, count, start_day=1):
    """First ``count`` Mon-Fri dates of a month."""
    days = []
    current = date(year, month, start_day)
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def utc():
    return UTC


@pytest.fixture
def madrid():
    return tz.gettz("Europe/Madrid")


@pytest.fixture
def march_now():
    """Reference "now" for compliance/trend tests: late March 2024, UTC."""
    return at(2024, 3, 28, 18, 0)


# ---------------------------------------------------------------------------
# Database / API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    """Fresh schema on the shared in-memory engine for every test."""
    from timeflow.core.database import Base, SessionLocal, engine
    import timeflow.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from timeflow.core.database import get_db
    from timeflow.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
