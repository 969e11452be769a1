from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..schemas import Milestone, MilestoneCategory
from ..tracker import Tracker
from .deps import get_tracker, http_error

router = APIRouter(prefix="/api/v1", tags=["milestones"])


class CreateMilestonePayload(BaseModel):
    title: str = Field(..., min_length=1)
    min_age_weeks: int = Field(ge=0)
    max_age_weeks: int = Field(ge=0)
    category: MilestoneCategory
    description: str = ""


class CompleteMilestonePayload(BaseModel):
    completed_at: Optional[datetime] = None


class DeleteMilestoneResponse(BaseModel):
    id: str
    deleted: bool


@router.get("/milestones", response_model=List[Milestone])
async def list_milestones(tracker: Tracker = Depends(get_tracker)) -> List[Milestone]:
    return tracker.milestones()


@router.post("/milestones", response_model=Milestone, status_code=201)
async def add_milestone(payload: CreateMilestonePayload, tracker: Tracker = Depends(get_tracker)) -> Milestone:
    try:
        milestone = Milestone(**payload.model_dump())
        return tracker.add_milestone(milestone)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.post("/milestones/{milestone_id}/complete", response_model=Milestone)
async def complete_milestone(
    milestone_id: str,
    payload: Optional[CompleteMilestonePayload] = None,
    tracker: Tracker = Depends(get_tracker),
) -> Milestone:
    when = payload.completed_at if payload else None
    try:
        return tracker.complete_milestone(milestone_id, when)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.post("/milestones/{milestone_id}/reopen", response_model=Milestone)
async def reopen_milestone(milestone_id: str, tracker: Tracker = Depends(get_tracker)) -> Milestone:
    try:
        return tracker.reopen_milestone(milestone_id)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.delete("/milestones/{milestone_id}", response_model=DeleteMilestoneResponse)
async def delete_milestone(milestone_id: str, tracker: Tracker = Depends(get_tracker)) -> DeleteMilestoneResponse:
    try:
        removed = tracker.delete_milestone(milestone_id)
    except ValueError as exc:
        raise http_error(exc) from exc
    return DeleteMilestoneResponse(id=milestone_id, deleted=removed is not None)
