"""Read-model endpoints: daily stats, weekly progress, countdowns and insights."""
from datetime import date
from typing import List, Optional

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..schemas import Countdown, DayStats, EventCategory, Insight, Suggestion, WeeklyProgress
from ..scheduler import SCHEDULED_CATEGORIES
from ..tracker import Tracker
from .deps import get_tracker

router = APIRouter(prefix="/api/v1", tags=["stats"])
logger = logging.getLogger(__name__)


class StreakResponse(BaseModel):
    streak: int


class SessionResponse(BaseModel):
    category: EventCategory
    active: bool


class NextActivityResponse(BaseModel):
    category: EventCategory


class DevelopmentScoreResponse(BaseModel):
    score: int


@router.get("/stats/today", response_model=DayStats)
async def stats_today(tracker: Tracker = Depends(get_tracker)) -> DayStats:
    return tracker.daily_stats()


@router.get("/stats/day", response_model=DayStats)
async def stats_for_day(
    day: Optional[date] = Query(None, description="Calendar day in the profile timezone"),
    tracker: Tracker = Depends(get_tracker),
) -> DayStats:
    return tracker.daily_stats(day)


@router.get("/stats/week", response_model=List[DayStats])
async def stats_week(tracker: Tracker = Depends(get_tracker)) -> List[DayStats]:
    """Seven daily summaries ending today, oldest first."""
    return tracker.weekly_series()


@router.get("/stats/progress", response_model=WeeklyProgress)
async def stats_progress(tracker: Tracker = Depends(get_tracker)) -> WeeklyProgress:
    return tracker.weekly_progress()


@router.get("/stats/streak", response_model=StreakResponse)
async def stats_streak(tracker: Tracker = Depends(get_tracker)) -> StreakResponse:
    return StreakResponse(streak=tracker.streak)


@router.get("/stats/development", response_model=DevelopmentScoreResponse)
async def stats_development(tracker: Tracker = Depends(get_tracker)) -> DevelopmentScoreResponse:
    return DevelopmentScoreResponse(score=tracker.development_score())


@router.get("/countdowns", response_model=List[Countdown])
async def list_countdowns(tracker: Tracker = Depends(get_tracker)) -> List[Countdown]:
    return tracker.countdowns()


@router.post("/sessions/{category}", response_model=SessionResponse)
async def start_session(category: EventCategory, tracker: Tracker = Depends(get_tracker)) -> SessionResponse:
    if category not in SCHEDULED_CATEGORIES:
        logger.info("session started for unscheduled category", extra={"category": category.value})
    tracker.start_session(category)
    return SessionResponse(category=category, active=True)


@router.delete("/sessions/{category}", response_model=SessionResponse)
async def end_session(category: EventCategory, tracker: Tracker = Depends(get_tracker)) -> SessionResponse:
    tracker.end_session(category)
    return SessionResponse(category=category, active=False)


@router.get("/insights", response_model=List[Insight])
async def list_insights(tracker: Tracker = Depends(get_tracker)) -> List[Insight]:
    return tracker.insights()


@router.get("/predictions/next", response_model=NextActivityResponse)
async def predict_next(tracker: Tracker = Depends(get_tracker)) -> NextActivityResponse:
    return NextActivityResponse(category=tracker.next_activity())


@router.get("/suggestions", response_model=List[Suggestion])
async def list_suggestions(tracker: Tracker = Depends(get_tracker)) -> List[Suggestion]:
    return tracker.suggestions()
