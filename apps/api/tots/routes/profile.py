from datetime import date
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..schemas import EventCategory, Gender, Snapshot, SubjectProfile, UnitSystem, WeeklyGoals
from ..tracker import Tracker
from .deps import get_tracker, http_error

router = APIRouter(prefix="/api/v1", tags=["profile"])


class UpdateProfilePayload(BaseModel):
    name: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    unit_system: Optional[UnitSystem] = None
    timezone: Optional[str] = None
    weekly_goals: Optional[WeeklyGoals] = None
    interval_overrides: Optional[Dict[EventCategory, float]] = None


@router.get("/profile", response_model=SubjectProfile)
async def get_profile(tracker: Tracker = Depends(get_tracker)) -> SubjectProfile:
    return tracker.profile


@router.patch("/profile", response_model=SubjectProfile)
async def update_profile(payload: UpdateProfilePayload, tracker: Tracker = Depends(get_tracker)) -> SubjectProfile:
    changes = payload.model_dump(include=payload.model_fields_set)
    if "name" in changes and not (changes["name"] or "").strip():
        raise HTTPException(status_code=400, detail="name cannot be empty")
    try:
        return tracker.update_profile(**changes)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.get("/snapshot", response_model=Snapshot)
async def get_snapshot(tracker: Tracker = Depends(get_tracker)) -> Snapshot:
    return tracker.snapshot()
