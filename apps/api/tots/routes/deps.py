"""Shared FastAPI dependencies for the tracker routes."""
from __future__ import annotations

from fastapi import HTTPException, Request

from ..errors import (
    DuplicateEventError,
    DuplicateWordError,
    EventNotFoundError,
    MilestoneNotFoundError,
    WordNotFoundError,
)
from ..tracker import Tracker

_NOT_FOUND = (EventNotFoundError, WordNotFoundError, MilestoneNotFoundError)
_CONFLICT = (DuplicateEventError, DuplicateWordError)


def get_tracker(request: Request) -> Tracker:
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Tracker is not loaded yet.")
    return tracker


def http_error(exc: ValueError) -> HTTPException:
    """Map a domain error onto the HTTP status the clients expect."""
    if isinstance(exc, _NOT_FOUND):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, _CONFLICT):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
