"""Content-based reconciliation of two independently collected event histories.

Ids are generated independently on each device, so duplicates are detected by
content: same category, label and mood within a short time window. Two distinct
events logged seconds apart with identical content will be merged, and one event
logged with different wording will be kept twice; both are accepted.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List

from .config import CONFIG
from .schemas import CareEvent

DEFAULT_WINDOW = timedelta(seconds=CONFIG.merge_window_seconds)


def is_duplicate(a: CareEvent, b: CareEvent, window: timedelta = DEFAULT_WINDOW) -> bool:
    return (
        a.category == b.category
        and a.label == b.label
        and a.mood == b.mood
        and abs(a.timestamp - b.timestamp) <= window
    )


def new_remote_events(
    local: Iterable[CareEvent],
    remote: Iterable[CareEvent],
    window: timedelta = DEFAULT_WINDOW,
) -> List[CareEvent]:
    """Remote events that are not already represented locally (by id or content).

    Candidates are only compared against ``local``; two remote events with the
    same content are both kept.
    """
    local = list(local)
    known_ids = {event.id for event in local}
    accepted: List[CareEvent] = []
    for candidate in remote:
        if candidate.id in known_ids:
            continue
        if any(is_duplicate(candidate, existing, window) for existing in local):
            continue
        known_ids.add(candidate.id)
        accepted.append(candidate)
    return accepted


def merge_events(
    local: Iterable[CareEvent],
    remote: Iterable[CareEvent],
    window: timedelta = DEFAULT_WINDOW,
) -> List[CareEvent]:
    local = list(local)
    merged = local + new_remote_events(local, remote, window)
    return sorted(merged, key=lambda event: event.timestamp, reverse=True)
