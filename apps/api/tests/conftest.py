from __future__ import annotations

import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path

# Point persistence at a scratch database before any tots module is imported.
_SCRATCH = Path(tempfile.mkdtemp(prefix="tots-tests-"))
os.environ.setdefault("TOTS_DATABASE_PATH", str(_SCRATCH / "tots.db"))
os.environ.setdefault("TOTS_CONFIG_PATH", str(_SCRATCH / "config.json"))

import pytest
from fastapi.testclient import TestClient

from tots.schemas import SubjectProfile
from tots.tracker import Tracker

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def profile() -> SubjectProfile:
    return SubjectProfile(name="Ava", birth_date=date(2024, 9, 15))


@pytest.fixture
def tracker(clock: FrozenClock, profile: SubjectProfile) -> Tracker:
    return Tracker(profile, clock=clock)


@pytest.fixture
def client(tracker: Tracker):
    from tots.main import app

    previous = app.state.tracker
    app.state.tracker = tracker
    try:
        yield TestClient(app)
    finally:
        app.state.tracker = previous
