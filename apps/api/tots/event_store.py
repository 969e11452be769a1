"""Append-only, de-duplicating collection of care events and their growth entries."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Dict, Iterator, List, Optional

from .errors import DuplicateEventError, EventNotFoundError
from .growth import resolve_growth_entry
from .schemas import CareEvent, EventCategory, GrowthEntry

logger = logging.getLogger(__name__)

EventPredicate = Callable[[CareEvent], bool]
StoreListener = Callable[["EventStore"], None]


def _minute(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(second=0, microsecond=0)


class EventQuery:
    """Lazy, restartable view over the store; every iteration re-reads current state."""

    def __init__(self, store: "EventStore", predicate: Optional[EventPredicate], descending: bool) -> None:
        self._store = store
        self._predicate = predicate
        self._descending = descending

    def __iter__(self) -> Iterator[CareEvent]:
        ordered = sorted(
            self._store._events.values(),
            key=lambda event: event.timestamp,
            reverse=self._descending,
        )
        for event in ordered:
            if self._predicate is None or self._predicate(event):
                yield event

    def first(self) -> Optional[CareEvent]:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)


class EventStore:
    def __init__(self) -> None:
        self._events: Dict[str, CareEvent] = {}
        # Growth entries keyed by the id of the event they were derived from.
        self._growth: Dict[str, GrowthEntry] = {}
        # Entries without a source event (older snapshots).
        self._detached_growth: List[GrowthEntry] = []
        self._listeners: List[StoreListener] = []

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def get(self, event_id: str) -> Optional[CareEvent]:
        return self._events.get(event_id)

    def subscribe(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def append(self, event: CareEvent, *, notify: bool = True) -> CareEvent:
        if event.id in self._events:
            raise DuplicateEventError(f"Event {event.id} already exists")
        self._events[event.id] = event
        if event.carries_measurements:
            self._reconcile_growth(event)
        logger.debug("event appended", extra={"event_id": event.id, "category": event.category.value})
        if notify:
            self._notify()
        return event

    def remove(self, event_id: str, *, notify: bool = True) -> Optional[CareEvent]:
        event = self._events.pop(event_id, None)
        if event is None:
            return None
        if self._growth.pop(event_id, None) is None and event.carries_measurements:
            self._drop_detached_growth(event)
        logger.debug("event removed", extra={"event_id": event_id})
        if notify:
            self._notify()
        return event

    def _drop_detached_growth(self, event: CareEvent) -> None:
        # Detached entries have no source id; match them to the event by minute.
        minute = _minute(event.timestamp)
        kept = [entry for entry in self._detached_growth if _minute(entry.date) != minute]
        if len(kept) != len(self._detached_growth):
            logger.debug("detached growth entry removed", extra={"event_id": event.id})
        self._detached_growth = kept

    def replace(self, event_id: str, new_event: CareEvent) -> CareEvent:
        old = self._events.get(event_id)
        if old is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        if new_event.timestamp != old.timestamp:
            logger.info(
                "ignoring timestamp change on replace",
                extra={"event_id": event_id, "requested": new_event.timestamp.isoformat()},
            )
        updated = new_event.model_copy(update={"id": event_id, "timestamp": old.timestamp})
        self._events[event_id] = updated
        if old.carries_measurements or updated.carries_measurements:
            self._reconcile_growth(updated)
        self._notify()
        return updated

    def _reconcile_growth(self, event: CareEvent) -> None:
        previous = self._growth.pop(event.id, None)
        entry = resolve_growth_entry(event, self.growth_entries())
        if entry is None:
            return
        if previous is not None:
            entry = entry.model_copy(update={"id": previous.id})
        self._growth[event.id] = entry

    def restore_event(self, event: CareEvent) -> None:
        """Load a persisted event without deriving growth entries or notifying."""
        if event.id in self._events:
            raise DuplicateEventError(f"Event {event.id} already exists")
        self._events[event.id] = event

    def restore_growth_entry(self, entry: GrowthEntry) -> None:
        """Load a persisted growth entry as-is, without re-deriving it."""
        if entry.source_event_id and entry.source_event_id in self._events:
            self._growth[entry.source_event_id] = entry
        else:
            self._detached_growth.append(entry)

    def growth_entries(self) -> List[GrowthEntry]:
        return sorted(
            [*self._growth.values(), *self._detached_growth],
            key=lambda entry: entry.date,
        )

    def growth_entry(self, entry_id: str) -> Optional[GrowthEntry]:
        return next((entry for entry in self.growth_entries() if entry.id == entry_id), None)

    def query(self, predicate: Optional[EventPredicate] = None, *, descending: bool = True) -> EventQuery:
        return EventQuery(self, predicate, descending)

    def on_day(self, day: date, tz: tzinfo, *, descending: bool = True) -> EventQuery:
        return self.query(lambda event: event.timestamp.astimezone(tz).date() == day, descending=descending)

    def latest(self, category: EventCategory) -> Optional[CareEvent]:
        return self.query(lambda event: event.category == category).first()

    def events(self, *, descending: bool = True) -> List[CareEvent]:
        return list(self.query(descending=descending))
