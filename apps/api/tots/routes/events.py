from datetime import date, datetime
from typing import List, Optional

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..schemas import CareEvent, EventCategory, Measurements, Mood, UnitSystem
from ..tracker import Tracker
from ..units import imperial_measurements
from .deps import get_tracker, http_error

router = APIRouter(prefix="/api/v1", tags=["events"])
logger = logging.getLogger(__name__)


class ImperialMeasurements(BaseModel):
    """Growth entry as typed on an imperial profile: lb + oz, ft + in."""

    pounds: Optional[float] = Field(default=None, ge=0)
    ounces: float = Field(default=0.0, ge=0, lt=16)
    feet: float = Field(default=0.0, ge=0)
    inches: Optional[float] = Field(default=None, ge=0)
    head_inches: Optional[float] = Field(default=None, ge=0)


class EventPayload(BaseModel):
    category: EventCategory
    timestamp: Optional[datetime] = Field(default=None, description="Defaults to now")
    label: str = ""
    mood: Mood = Mood.NEUTRAL
    duration: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = None
    measurements: Optional[Measurements] = None
    imperial: Optional[ImperialMeasurements] = Field(
        default=None,
        description="Imperial profiles only; converted to metric measurements",
    )


class CreateEventPayload(EventPayload):
    id: Optional[str] = None


class DeleteEventResponse(BaseModel):
    id: str
    deleted: bool


def _to_event(payload: EventPayload, tracker: Tracker, event_id: Optional[str] = None) -> CareEvent:
    data = payload.model_dump(exclude={"id", "imperial"})
    data["timestamp"] = payload.timestamp or tracker.now()
    if payload.imperial is not None:
        if tracker.profile.unit_system != UnitSystem.IMPERIAL:
            raise ValueError("Imperial measurements require an imperial profile")
        if payload.measurements is not None:
            raise ValueError("Send either measurements or imperial, not both")
        data["measurements"] = imperial_measurements(**payload.imperial.model_dump())
    if event_id:
        data["id"] = event_id
    return CareEvent.model_validate(data)


@router.post("/events", response_model=CareEvent, status_code=201)
async def create_event(payload: CreateEventPayload, tracker: Tracker = Depends(get_tracker)) -> CareEvent:
    try:
        created = tracker.append_event(_to_event(payload, tracker, payload.id))
    except ValueError as exc:
        raise http_error(exc) from exc
    logger.info("event logged", extra={"event_id": created.id, "category": created.category.value})
    return created


@router.get("/events", response_model=List[CareEvent])
async def list_events(
    category: Optional[EventCategory] = Query(None, description="Only this category"),
    day: Optional[date] = Query(None, description="Calendar day in the profile timezone"),
    limit: Optional[int] = Query(None, ge=1, description="Newest first"),
    tracker: Tracker = Depends(get_tracker),
) -> List[CareEvent]:
    """Return logged events, newest first."""

    events = tracker.events_on(day) if day is not None else tracker.events()
    if category is not None:
        events = [event for event in events if event.category == category]
    if limit is not None:
        events = events[:limit]
    return events


@router.get("/events/{event_id}", response_model=CareEvent)
async def get_event(event_id: str, tracker: Tracker = Depends(get_tracker)) -> CareEvent:
    event = tracker.store.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return event


@router.put("/events/{event_id}", response_model=CareEvent)
async def replace_event(
    event_id: str,
    payload: EventPayload,
    tracker: Tracker = Depends(get_tracker),
) -> CareEvent:
    existing = tracker.store.get(event_id)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    payload = payload.model_copy(update={"timestamp": payload.timestamp or existing.timestamp})
    try:
        return tracker.replace_event(event_id, _to_event(payload, tracker, event_id))
    except ValueError as exc:
        raise http_error(exc) from exc


@router.delete("/events/{event_id}", response_model=DeleteEventResponse)
async def delete_event(event_id: str, tracker: Tracker = Depends(get_tracker)) -> DeleteEventResponse:
    removed = tracker.remove_event(event_id)
    return DeleteEventResponse(id=event_id, deleted=removed is not None)
