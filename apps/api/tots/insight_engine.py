"""Rule-based insights and predictions over aggregated statistics."""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import List, Optional, Sequence

from .aggregation import is_tummy_time
from .percentiles import age_in_months
from .schemas import (
    CareEvent,
    DayStats,
    EventCategory,
    GrowthEntry,
    Insight,
    InsightType,
    Milestone,
    Mood,
    Suggestion,
    SuggestionPriority,
)

IDEAL_SLEEP_HOURS = 14.5
SLEEP_WARNING_GAP_HOURS = 2.0
FEEDING_CONSISTENCY_THRESHOLD = 0.8
FEEDINGS_PER_DAY_TARGET = 7
MOOD_WINDOW = 20
HEALTHY_MONTHLY_GAIN_KG = (0.5, 1.0)


def consistency(values: Sequence[float]) -> float:
    """1 - (population stddev / mean), floored at 0; 0 for short or empty series."""
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 0.0
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return max(0.0, 1.0 - math.sqrt(variance) / mean)


def analyze_sleep(series: Sequence[DayStats], name: str = "Baby") -> Optional[Insight]:
    if not series or not any(day.sleep_hours for day in series):
        return None
    avg_sleep = sum(day.sleep_hours for day in series) / len(series)
    if avg_sleep >= IDEAL_SLEEP_HOURS:
        return Insight(
            id="sleep_excellent",
            title="Excellent Sleep Pattern",
            description=(
                f"{name} is getting {avg_sleep:.1f} hours of sleep on average. "
                "This is optimal for healthy development!"
            ),
            type=InsightType.POSITIVE,
            confidence=0.94,
        )
    if avg_sleep < IDEAL_SLEEP_HOURS - SLEEP_WARNING_GAP_HOURS:
        return Insight(
            id="sleep_concern",
            title="Sleep Improvement Needed",
            description=(
                f"{name} is getting {avg_sleep:.1f} hours of sleep. "
                "Consider adjusting bedtime routine for better rest."
            ),
            type=InsightType.WARNING,
            confidence=0.87,
        )
    return None


def analyze_feeding(series: Sequence[DayStats]) -> Optional[Insight]:
    if not series:
        return None
    feedings = [float(day.feedings) for day in series]
    avg_feedings = sum(feedings) / len(feedings)
    if consistency(feedings) > FEEDING_CONSISTENCY_THRESHOLD and avg_feedings >= FEEDINGS_PER_DAY_TARGET:
        return Insight(
            id="feeding_optimal",
            title="Perfect Feeding Rhythm",
            description=(
                f"Your feeding schedule is very consistent with {avg_feedings:.1f} feeds per day. Great job!"
            ),
            type=InsightType.POSITIVE,
            confidence=0.91,
        )
    return None


def predict_next_milestone(milestones: Sequence[Milestone]) -> Optional[Insight]:
    if not milestones:
        return None
    pending = [milestone for milestone in milestones if not milestone.is_completed]
    if not pending:
        return None
    upcoming = min(pending, key=lambda milestone: milestone.min_age_weeks)
    completion_rate = (len(milestones) - len(pending)) / len(milestones)
    return Insight(
        id="milestone_prediction",
        title="Next Milestone Prediction",
        description=(
            f"Based on current development, {upcoming.title.lower()} may occur within the next 2-4 weeks!"
        ),
        type=InsightType.EXCITING,
        confidence=min(0.95, completion_rate + 0.2),
    )


def analyze_mood(events: Sequence[CareEvent], name: str = "Baby") -> Optional[Insight]:
    """Expects events newest first."""
    recent = list(events[:MOOD_WINDOW])
    if not recent:
        return None
    happy_ratio = sum(1 for event in recent if event.mood == Mood.HAPPY) / len(recent)
    if happy_ratio > 0.7:
        return Insight(
            id="mood_excellent",
            title="Very Happy Baby",
            description=(
                f"{name} has been happy in {int(happy_ratio * 100)}% of recent activities. "
                "You're doing an amazing job!"
            ),
            type=InsightType.POSITIVE,
            confidence=0.88,
        )
    if happy_ratio < 0.3:
        return Insight(
            id="mood_attention",
            title="Mood Needs Attention",
            description=(
                f"{name} seems fussy lately. Consider checking for growth spurts or schedule adjustments."
            ),
            type=InsightType.WARNING,
            confidence=0.75,
        )
    return None


def _whole_months_between(start: datetime, end: datetime) -> int:
    return age_in_months(start.date(), end.date())


def analyze_growth(entries: Sequence[GrowthEntry], name: str = "Baby") -> Optional[Insight]:
    """Expects entries oldest first."""
    if len(entries) < 3:
        return None
    recent = list(entries)[-3:]
    first, last = recent[0], recent[-1]
    if first.weight <= 0 or last.weight <= 0:
        return None
    months = max(_whole_months_between(first.date, last.date), 1)
    monthly_gain = (last.weight - first.weight) / months
    low, high = HEALTHY_MONTHLY_GAIN_KG
    if low <= monthly_gain <= high:
        return Insight(
            id="growth_healthy",
            title="Healthy Growth Rate",
            description=(
                f"{name} is gaining {monthly_gain:.1f} kg per month. This is perfect for their age!"
            ),
            type=InsightType.POSITIVE,
            confidence=0.92,
        )
    return None


def generate_insights(
    *,
    series: Sequence[DayStats],
    events: Sequence[CareEvent],
    milestones: Sequence[Milestone],
    growth_entries: Sequence[GrowthEntry],
    name: str = "Baby",
) -> List[Insight]:
    candidates = [
        analyze_sleep(series, name),
        analyze_feeding(series),
        predict_next_milestone(milestones),
        analyze_mood(events, name),
        analyze_growth(growth_entries, name),
    ]
    return [insight for insight in candidates if insight is not None]


# Hours since the last event after which another category is likely next.
NEXT_AFTER = {
    EventCategory.FEEDING: (2.5, EventCategory.DIAPER),
    EventCategory.DIAPER: (1.0, EventCategory.ACTIVITY),
    EventCategory.SLEEP: (0.5, EventCategory.FEEDING),
    EventCategory.ACTIVITY: (1.5, EventCategory.FEEDING),
    EventCategory.MILESTONE: (0.0, EventCategory.ACTIVITY),
    EventCategory.GROWTH: (0.0, EventCategory.FEEDING),
}


def _category_for_hour(hour: int) -> EventCategory:
    if 6 <= hour <= 9 or 12 <= hour <= 13 or 17 <= hour <= 18:
        return EventCategory.FEEDING
    if 10 <= hour <= 11 or 14 <= hour <= 16:
        return EventCategory.ACTIVITY
    if 19 <= hour <= 22:
        return EventCategory.SLEEP
    return EventCategory.DIAPER


def predict_next_activity(events: Sequence[CareEvent], now: datetime) -> EventCategory:
    """Most likely next event category. Expects events newest first; ``now`` in local time."""
    if not events:
        return EventCategory.FEEDING
    last = events[0]
    hours_since = (now - last.timestamp).total_seconds() / 3600
    rule = NEXT_AFTER.get(last.category)
    if rule is not None:
        threshold, likely = rule
        if threshold == 0.0 or hours_since > threshold:
            return likely
    return _category_for_hour(now.hour)


def smart_suggestions(
    events: Sequence[CareEvent],
    milestones: Sequence[Milestone],
    now: datetime,
) -> List[Suggestion]:
    """Prioritized nudges for the home screen. Expects events newest first."""
    suggestions: List[Suggestion] = []
    if events:
        last = events[0]
        hours_since = (now - last.timestamp).total_seconds() / 3600
        if hours_since > 3 and last.category != EventCategory.FEEDING:
            suggestions.append(
                Suggestion(
                    id="feeding_time",
                    title="Feeding Time",
                    description=f"It's been {int(hours_since)} hours since the last activity",
                    action="Log Feeding",
                    priority=SuggestionPriority.HIGH,
                )
            )
        last_tummy = next((event for event in events if is_tummy_time(event)), None)
        if last_tummy is not None and (now - last_tummy.timestamp).total_seconds() / 3600 > 3:
            suggestions.append(
                Suggestion(
                    id="tummy_time",
                    title="Tummy Time",
                    description="Important for motor development",
                    action="Start Session",
                    priority=SuggestionPriority.MEDIUM,
                )
            )

    pending = [milestone for milestone in milestones if not milestone.is_completed]
    if pending:
        upcoming = min(pending, key=lambda milestone: milestone.min_age_weeks)
        suggestions.append(
            Suggestion(
                id="milestone_activity",
                title="Milestone Practice",
                description=f"Activities to help with {upcoming.title.lower()}",
                action="Get Ideas",
                priority=SuggestionPriority.MEDIUM,
            )
        )

    today = [event for event in events if event.timestamp.astimezone(now.tzinfo).date() == now.date()]
    if len(today) > 3 and not any("photo" in (event.note or "").lower() for event in today):
        suggestions.append(
            Suggestion(
                id="photo_memory",
                title="Capture Today",
                description="Document this special day",
                action="Take Photo",
                priority=SuggestionPriority.LOW,
            )
        )
    return suggestions


def development_score(milestones: Sequence[Milestone], birth_date: date, today: date) -> int:
    if not milestones:
        return 0
    completed = sum(1 for milestone in milestones if milestone.is_completed)
    score = int(completed / len(milestones) * 100)
    months_old = (today - birth_date).days // 30
    if months_old < 8 and completed > 4:
        score += 10
    elif months_old > 10 and completed < 3:
        score -= 5
    return min(100, max(0, score))
