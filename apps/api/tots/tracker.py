"""State holder owning the event log, milestones, vocabulary and subject profile.

Every mutation goes through the tracker (or its EventStore). After each one the
aggregates are recomputed synchronously and change listeners receive a fresh
Snapshot before the mutating call returns. Read models are recomputed from
current state on every call.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from .aggregation import AggregateState, compute_aggregates, day_stats, weekly_progress, weekly_series
from .config import CONFIG, AppConfig
from .errors import DuplicateEventError, DuplicateWordError, MilestoneNotFoundError
from .event_store import EventPredicate, EventQuery, EventStore
from .insight_engine import development_score, generate_insights, predict_next_activity, smart_suggestions
from .merge import new_remote_events
from .milestones import PREDEFINED_BY_ID, find_milestone, merged_milestones
from .percentiles import percentiles_for_entry
from .scheduler import countdown_for, countdowns
from .schemas import (
    CareEvent,
    Countdown,
    DayStats,
    EventCategory,
    GrowthEntry,
    GrowthPercentiles,
    Insight,
    Milestone,
    Mood,
    Snapshot,
    SubjectProfile,
    Suggestion,
    VocabularyWord,
    WeeklyProgress,
)
from .vocabulary import VocabularyBook

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ChangeListener = Callable[[Snapshot], None]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Tracker:
    def __init__(
        self,
        profile: Optional[SubjectProfile] = None,
        *,
        clock: Clock = utc_now,
        config: AppConfig = CONFIG,
    ) -> None:
        self.profile = profile or SubjectProfile()
        self.config = config
        self.store = EventStore()
        self.vocabulary = VocabularyBook()
        self._clock = clock
        self._milestones: Dict[str, Milestone] = {}
        self._active_sessions: Set[EventCategory] = set()
        self._listeners: List[ChangeListener] = []
        self.aggregates: AggregateState = compute_aggregates([], self.today(), self.tz)
        self.store.subscribe(self._on_store_change)

    # -- time --------------------------------------------------------------

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.profile.timezone)

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    # -- change propagation ------------------------------------------------

    def on_change(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def recompute(self) -> AggregateState:
        self.aggregates = compute_aggregates(self.store.events(), self.today(), self.tz)
        return self.aggregates

    def refresh(self) -> AggregateState:
        """Advisory recompute used by the periodic ticker."""
        return self.recompute()

    def _on_store_change(self, _: EventStore) -> None:
        self.recompute()
        self._emit_change()

    def _emit_change(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # -- ingestion ---------------------------------------------------------

    def append_event(self, event: CareEvent) -> CareEvent:
        return self.store.append(event)

    def remove_event(self, event_id: str) -> Optional[CareEvent]:
        return self.store.remove(event_id)

    def replace_event(self, event_id: str, event: CareEvent) -> CareEvent:
        return self.store.replace(event_id, event)

    def apply_remote_events(self, remote: Iterable[CareEvent]) -> List[CareEvent]:
        """Merge a remote batch; events already known (by id or content) are no-ops.

        If a change listener fails, the accepted events are removed again before
        the error propagates.
        """
        window = timedelta(seconds=self.config.merge_window_seconds)
        accepted = new_remote_events(self.store.events(), remote, window)
        for event in accepted:
            self.store.append(event, notify=False)
        if accepted:
            self.recompute()
            try:
                self._emit_change()
            except Exception:
                for event in accepted:
                    self.store.remove(event.id, notify=False)
                self.recompute()
                raise
        logger.info("remote events merged", extra={"accepted": len(accepted)})
        return accepted

    # -- read models -------------------------------------------------------

    def events(self, *, descending: bool = True) -> List[CareEvent]:
        return self.store.events(descending=descending)

    def query(self, predicate: Optional[EventPredicate] = None, *, descending: bool = True) -> EventQuery:
        return self.store.query(predicate, descending=descending)

    def events_on(self, day: date) -> List[CareEvent]:
        return list(self.store.on_day(day, self.tz))

    def growth_entries(self) -> List[GrowthEntry]:
        return self.store.growth_entries()

    @property
    def streak(self) -> int:
        return self.recompute().streak

    def daily_stats(self, day: Optional[date] = None) -> DayStats:
        return day_stats(self.store.events(), day or self.today(), self.tz)

    def weekly_series(self) -> List[DayStats]:
        return weekly_series(self.store.events(), self.today(), self.tz)

    def weekly_progress(self) -> WeeklyProgress:
        return weekly_progress(self.weekly_series(), self.profile.weekly_goals)

    def percentiles_for(self, entry: GrowthEntry) -> GrowthPercentiles:
        return percentiles_for_entry(entry, self.profile)

    def countdown(self, category: EventCategory) -> Countdown:
        return countdown_for(
            self.store.events(),
            category,
            self.now(),
            profile=self.profile,
            active_sessions=self._active_sessions,
            config=self.config,
        )

    def countdowns(self) -> List[Countdown]:
        return countdowns(
            self.store.events(),
            self.now(),
            profile=self.profile,
            active_sessions=self._active_sessions,
            config=self.config,
        )

    def insights(self) -> List[Insight]:
        return generate_insights(
            series=self.weekly_series(),
            events=self.store.events(),
            milestones=self.milestones(),
            growth_entries=self.store.growth_entries(),
            name=self.profile.name,
        )

    def next_activity(self) -> EventCategory:
        return predict_next_activity(self.store.events(), self.now())

    def suggestions(self) -> List[Suggestion]:
        return smart_suggestions(self.store.events(), self.milestones(), self.now())

    def development_score(self) -> int:
        return development_score(self.milestones(), self.profile.birth_date, self.today())

    # -- in-progress sessions ------------------------------------------------

    def start_session(self, category: EventCategory) -> None:
        self._active_sessions.add(category)

    def end_session(self, category: EventCategory) -> None:
        self._active_sessions.discard(category)

    @property
    def active_sessions(self) -> Set[EventCategory]:
        return set(self._active_sessions)

    # -- milestones --------------------------------------------------------

    def milestones(self) -> List[Milestone]:
        return merged_milestones(self._milestones.values())

    def _require_milestone(self, milestone_id: str) -> Milestone:
        milestone = find_milestone(self._milestones.values(), milestone_id)
        if milestone is None:
            raise MilestoneNotFoundError(f"Milestone {milestone_id} not found")
        return milestone

    def complete_milestone(self, milestone_id: str, when: Optional[datetime] = None) -> Milestone:
        milestone = self._require_milestone(milestone_id)
        if milestone.is_completed:
            return milestone
        completed_at = when or self.now()
        completed = milestone.model_copy(update={"is_completed": True, "completed_date": completed_at})
        self._milestones[completed.id] = completed
        # Logging the milestone event triggers the change notification.
        self.store.append(
            CareEvent(
                category=EventCategory.MILESTONE,
                timestamp=completed_at,
                label=completed.title,
                mood=Mood.HAPPY,
                note=completed.description,
            )
        )
        return completed

    def reopen_milestone(self, milestone_id: str) -> Milestone:
        milestone = self._require_milestone(milestone_id)
        reopened = milestone.model_copy(update={"is_completed": False, "completed_date": None})
        self._milestones[reopened.id] = reopened
        self._emit_change()
        return reopened

    def add_milestone(self, milestone: Milestone) -> Milestone:
        if milestone.id in PREDEFINED_BY_ID or milestone.id in self._milestones:
            raise ValueError(f"Milestone {milestone.id} already exists")
        custom = milestone.model_copy(update={"is_predefined": False})
        self._milestones[custom.id] = custom
        self._emit_change()
        return custom

    def delete_milestone(self, milestone_id: str) -> Optional[Milestone]:
        milestone = self._milestones.get(milestone_id)
        if milestone is None:
            if milestone_id in PREDEFINED_BY_ID:
                raise ValueError("Predefined milestones cannot be deleted")
            return None
        if milestone.is_predefined:
            raise ValueError("Predefined milestones cannot be deleted")
        del self._milestones[milestone_id]
        self._emit_change()
        return milestone

    # -- vocabulary --------------------------------------------------------

    def add_word(self, word: VocabularyWord) -> VocabularyWord:
        added = self.vocabulary.add(word)
        self._emit_change()
        return added

    def update_word(self, word_id: str, **changes: Any) -> VocabularyWord:
        updated = self.vocabulary.update(word_id, **changes)
        self._emit_change()
        return updated

    def delete_word(self, word_id: str) -> Optional[VocabularyWord]:
        removed = self.vocabulary.delete(word_id)
        if removed is not None:
            self._emit_change()
        return removed

    # -- profile -----------------------------------------------------------

    def update_profile(self, **changes: Any) -> SubjectProfile:
        self.profile = SubjectProfile.model_validate({**self.profile.model_dump(), **changes})
        self.recompute()
        self._emit_change()
        return self.profile

    # -- persistence boundary ------------------------------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot(
            events=self.store.events(),
            growth_entries=self.store.growth_entries(),
            milestones=list(self._milestones.values()),
            words=self.vocabulary.words(),
            profile=self.profile,
        )

    @classmethod
    def from_snapshot(
        cls,
        payload: Mapping[str, Any] | Snapshot,
        *,
        clock: Clock = utc_now,
        config: AppConfig = CONFIG,
    ) -> "Tracker":
        """Best-effort load: corrupt records are dropped, never the whole snapshot."""
        if isinstance(payload, Snapshot):
            payload = payload.model_dump(mode="json")

        profile = SubjectProfile()
        if payload.get("profile") is not None:
            try:
                profile = SubjectProfile.model_validate(payload["profile"])
            except ValidationError as exc:
                logger.warning("dropping corrupt profile", extra={"errors": exc.error_count()})

        tracker = cls(profile, clock=clock, config=config)

        for raw in _records(payload, "events"):
            try:
                tracker.store.restore_event(CareEvent.model_validate(raw))
            except (ValidationError, DuplicateEventError) as exc:
                _log_dropped("event", raw, exc)

        for raw in _records(payload, "growth_entries"):
            try:
                tracker.store.restore_growth_entry(GrowthEntry.model_validate(raw))
            except ValidationError as exc:
                _log_dropped("growth_entry", raw, exc)

        for raw in _records(payload, "milestones"):
            try:
                milestone = Milestone.model_validate(raw)
            except ValidationError as exc:
                _log_dropped("milestone", raw, exc)
                continue
            tracker._milestones[milestone.id] = milestone

        for raw in _records(payload, "words"):
            try:
                tracker.vocabulary.add(VocabularyWord.model_validate(raw))
            except (ValidationError, DuplicateWordError) as exc:
                _log_dropped("word", raw, exc)

        tracker.recompute()
        return tracker


def _records(payload: Mapping[str, Any], key: str) -> List[Any]:
    records = payload.get(key) or []
    if not isinstance(records, list):
        logger.warning("snapshot collection is not a list", extra={"collection": key})
        return []
    return records


def _log_dropped(kind: str, raw: Any, exc: Exception) -> None:
    record_id = raw.get("id") if isinstance(raw, dict) else None
    logger.warning(
        "dropping corrupt snapshot record",
        extra={"kind": kind, "record_id": record_id, "error": str(exc)[:200]},
    )
