"""Countdowns until the next expected feeding, pumping and diaper change."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Collection, Dict, Iterable, List, Optional

from .config import CONFIG, AppConfig
from .schemas import CareEvent, Countdown, EventCategory, SubjectProfile

SCHEDULED_CATEGORIES = (EventCategory.FEEDING, EventCategory.PUMPING, EventCategory.DIAPER)

DUE_NOW = "Due Now"


def default_intervals(config: AppConfig = CONFIG) -> Dict[EventCategory, float]:
    return {
        EventCategory.FEEDING: config.feeding_interval_hours,
        EventCategory.PUMPING: config.pumping_interval_hours,
        EventCategory.DIAPER: config.diaper_interval_hours,
    }


def interval_for(
    category: EventCategory,
    profile: Optional[SubjectProfile] = None,
    config: AppConfig = CONFIG,
) -> timedelta:
    """Profile override first, configured default second; read at point of use."""
    hours = None
    if profile is not None:
        hours = profile.interval_overrides.get(category)
    if hours is None:
        hours = default_intervals(config)[category]
    return timedelta(hours=hours)


def last_event_of(events: Iterable[CareEvent], category: EventCategory) -> Optional[CareEvent]:
    latest: Optional[CareEvent] = None
    for event in events:
        if event.category != category:
            continue
        if latest is None or event.timestamp > latest.timestamp:
            latest = event
    return latest


def next_expected(
    events: Iterable[CareEvent],
    category: EventCategory,
    interval: timedelta,
    now: datetime,
) -> datetime:
    last = last_event_of(events, category)
    if last is None:
        return now
    return last.timestamp + interval


def format_countdown(seconds: Optional[float]) -> str:
    if seconds is None or seconds <= 0:
        return DUE_NOW
    hours = int(seconds) // 3600
    minutes = (int(seconds) % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return DUE_NOW


def countdown_for(
    events: Iterable[CareEvent],
    category: EventCategory,
    now: datetime,
    *,
    profile: Optional[SubjectProfile] = None,
    active_sessions: Collection[EventCategory] = (),
    config: AppConfig = CONFIG,
) -> Countdown:
    expected = next_expected(events, category, interval_for(category, profile, config), now)
    if category in active_sessions:
        return Countdown(category=category, next_expected_at=expected, seconds_remaining=None, label=None)
    remaining = max(0.0, (expected - now).total_seconds())
    return Countdown(
        category=category,
        next_expected_at=expected,
        seconds_remaining=remaining,
        label=format_countdown(remaining),
    )


def countdowns(
    events: Iterable[CareEvent],
    now: datetime,
    *,
    profile: Optional[SubjectProfile] = None,
    active_sessions: Collection[EventCategory] = (),
    config: AppConfig = CONFIG,
) -> List[Countdown]:
    events = list(events)
    return [
        countdown_for(
            events,
            category,
            now,
            profile=profile,
            active_sessions=active_sessions,
            config=config,
        )
        for category in SCHEDULED_CATEGORIES
    ]
