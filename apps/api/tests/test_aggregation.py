from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from tots.aggregation import (
    compute_aggregates,
    day_stats,
    is_tummy_time,
    streak,
    weekly_progress,
    weekly_series,
)
from tots.event_store import EventStore
from tots.schemas import CareEvent, EventCategory, WeeklyGoals

TODAY = date(2025, 3, 14)
UTC = timezone.utc


def at(day: date, hour: int = 9, **kwargs) -> CareEvent:
    kwargs.setdefault("category", EventCategory.FEEDING)
    return CareEvent(timestamp=datetime(day.year, day.month, day.day, hour, tzinfo=UTC), **kwargs)


def test_day_stats_sums_durations_by_kind():
    events = [
        at(TODAY, 7),
        at(TODAY, 8),
        at(TODAY, 9, category=EventCategory.DIAPER),
        at(TODAY, 10, category=EventCategory.SLEEP, duration=90),
        at(TODAY, 11, category=EventCategory.ACTIVITY, label="Tummy Time", duration=15),
        at(TODAY, 12, category=EventCategory.ACTIVITY, label="Play gym", duration=20),
        at(TODAY, 13, category=EventCategory.MILESTONE),
        at(TODAY - timedelta(days=1), 9),
    ]
    stats = day_stats(events, TODAY, UTC)
    assert stats.day == TODAY
    assert stats.feedings == 2
    assert stats.diapers == 1
    assert stats.milestones == 1
    assert stats.sleep_hours == pytest.approx(1.5)
    assert stats.tummy_time_minutes == 15
    assert stats.play_minutes == 20
    assert stats.activities == 7


def test_tummy_time_is_detected_by_label():
    assert is_tummy_time(at(TODAY, category=EventCategory.ACTIVITY, label="tummy on the mat"))
    assert not is_tummy_time(at(TODAY, category=EventCategory.FEEDING, label="tummy"))


def test_streak_counts_consecutive_days():
    events = [at(TODAY), at(TODAY - timedelta(days=1)), at(TODAY - timedelta(days=2))]
    assert streak(events, TODAY, UTC) == 3


def test_streak_stops_at_a_gap():
    events = [at(TODAY), at(TODAY - timedelta(days=2))]
    assert streak(events, TODAY, UTC) == 1


def test_streak_is_zero_without_an_event_today():
    assert streak([at(TODAY - timedelta(days=1))], TODAY, UTC) == 0


def test_streak_follows_the_subject_timezone():
    # 03:00 UTC on the 14th is still the 13th in Los Angeles.
    events = [at(TODAY, 3), at(TODAY, 20)]
    assert streak(events, TODAY, UTC) == 1
    assert streak(events, TODAY, ZoneInfo("America/Los_Angeles")) == 2


def test_weekly_series_is_oldest_first_and_padded():
    series = weekly_series([at(TODAY)], TODAY, UTC)
    assert [day.day for day in series] == [TODAY - timedelta(days=offset) for offset in range(6, -1, -1)]
    assert series[-1].feedings == 1
    assert all(day.activities == 0 for day in series[:-1])


def test_weekly_progress_with_no_events_is_zero():
    progress = weekly_progress(weekly_series([], TODAY, UTC), WeeklyGoals())
    assert progress.feedings == 0.0
    assert progress.diapers == 0.0
    assert progress.sleep == 0.0
    assert progress.tummy_time == 0.0


def test_weekly_progress_can_exceed_goal():
    events = [at(TODAY - timedelta(days=d), h) for d in range(7) for h in range(8, 18)]
    progress = weekly_progress(weekly_series(events, TODAY, UTC), WeeklyGoals(feedings=56))
    assert progress.feedings == pytest.approx(70 / 56)


def test_append_then_remove_restores_aggregates():
    store = EventStore()
    store.append(at(TODAY, 8))
    store.append(at(TODAY - timedelta(days=1), 8, category=EventCategory.SLEEP, duration=120))
    before = compute_aggregates(store.events(), TODAY, UTC)

    extra = store.append(at(TODAY - timedelta(days=2), 8))
    assert compute_aggregates(store.events(), TODAY, UTC) != before
    store.remove(extra.id)

    assert compute_aggregates(store.events(), TODAY, UTC) == before
