from typing import Any, List

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ValidationError

from ..schemas import CareEvent
from ..tracker import Tracker
from .deps import get_tracker

router = APIRouter(prefix="/api/v1", tags=["sync"])
logger = logging.getLogger(__name__)


class RemoteMergeResponse(BaseModel):
    received: int
    accepted: List[CareEvent]
    dropped: int


@router.post("/sync/remote", response_model=RemoteMergeResponse)
async def merge_remote_batch(records: List[Any], tracker: Tracker = Depends(get_tracker)) -> RemoteMergeResponse:
    """Merge a batch of events collected elsewhere; duplicates and corrupt records are ignored."""

    events: List[CareEvent] = []
    dropped = 0
    for raw in records:
        try:
            events.append(CareEvent.model_validate(raw))
        except ValidationError:
            dropped += 1
    if dropped:
        logger.warning("dropping corrupt remote records", extra={"dropped": dropped})
    accepted = tracker.apply_remote_events(events)
    return RemoteMergeResponse(received=len(records), accepted=accepted, dropped=dropped)
