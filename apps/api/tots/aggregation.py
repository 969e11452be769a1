"""Per-day and rolling-week statistics derived from the event log."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Dict, Iterable, List

from .schemas import CareEvent, DayStats, EventCategory, WeeklyGoals, WeeklyProgress

WEEK_DAYS = 7


def is_tummy_time(event: CareEvent) -> bool:
    return event.category == EventCategory.ACTIVITY and "tummy" in event.label.lower()


def _events_by_day(events: Iterable[CareEvent], tz: tzinfo) -> Dict[date, List[CareEvent]]:
    grouped: Dict[date, List[CareEvent]] = defaultdict(list)
    for event in events:
        grouped[event.timestamp.astimezone(tz).date()].append(event)
    return grouped


def summarize_day(day: date, events: Iterable[CareEvent]) -> DayStats:
    counts: Dict[EventCategory, int] = defaultdict(int)
    sleep_minutes = 0
    tummy_minutes = 0
    play_minutes = 0
    total = 0
    for event in events:
        total += 1
        counts[event.category] += 1
        if event.category == EventCategory.SLEEP:
            sleep_minutes += event.duration or 0
        elif event.category == EventCategory.ACTIVITY:
            if is_tummy_time(event):
                tummy_minutes += event.duration or 0
            else:
                play_minutes += event.duration or 0
    return DayStats(
        day=day,
        feedings=counts[EventCategory.FEEDING],
        diapers=counts[EventCategory.DIAPER],
        milestones=counts[EventCategory.MILESTONE],
        sleep_hours=sleep_minutes / 60.0,
        tummy_time_minutes=tummy_minutes,
        play_minutes=play_minutes,
        activities=total,
    )


def day_stats(events: Iterable[CareEvent], day: date, tz: tzinfo) -> DayStats:
    on_day = [event for event in events if event.timestamp.astimezone(tz).date() == day]
    return summarize_day(day, on_day)


def streak(events: Iterable[CareEvent], today: date, tz: tzinfo) -> int:
    """Consecutive days with at least one event, walking backward from today."""
    days_with_events = set(_events_by_day(events, tz))
    count = 0
    current = today
    while current in days_with_events:
        count += 1
        current -= timedelta(days=1)
    return count


def weekly_series(events: Iterable[CareEvent], today: date, tz: tzinfo) -> List[DayStats]:
    """Last seven calendar days, oldest first, today last."""
    grouped = _events_by_day(events, tz)
    days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
    return [summarize_day(day, grouped.get(day, [])) for day in days]


def weekly_progress(series: List[DayStats], goals: WeeklyGoals) -> WeeklyProgress:
    """Seven-day totals over the configured weekly goals; may exceed 1.0."""
    return WeeklyProgress(
        feedings=sum(day.feedings for day in series) / goals.feedings,
        diapers=sum(day.diapers for day in series) / goals.diapers,
        sleep=sum(day.sleep_hours for day in series) / goals.sleep_hours,
        tummy_time=sum(day.tummy_time_minutes for day in series) / goals.tummy_time_minutes,
    )


@dataclass
class AggregateState:
    today: DayStats
    weekly: List[DayStats] = field(default_factory=list)
    streak: int = 0
    total_events: int = 0


def compute_aggregates(events: Iterable[CareEvent], today: date, tz: tzinfo) -> AggregateState:
    events = list(events)
    weekly = weekly_series(events, today, tz)
    return AggregateState(
        today=weekly[-1],
        weekly=weekly,
        streak=streak(events, today, tz),
        total_events=len(events),
    )
