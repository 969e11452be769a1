"""Growth entries derived from measurement-carrying care events."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from .schemas import CareEvent, GrowthEntry

logger = logging.getLogger(__name__)

GROWTH_FIELDS = ("weight", "height", "head_circumference")


def _latest_positive(field: str, prior: list[GrowthEntry]) -> Optional[float]:
    for entry in reversed(prior):
        value = getattr(entry, field)
        if value and value > 0:
            return value
    return None


def resolve_growth_entry(event: CareEvent, history: Iterable[GrowthEntry]) -> Optional[GrowthEntry]:
    """Materialize a GrowthEntry for ``event``, backfilling missing fields.

    Missing (or zero) fields come from the chronologically latest earlier entry
    holding a positive value for that field. The entry previously derived from
    the same event is ignored so re-resolution after an edit does not feed on
    itself. Returns None when the event carries no measurement or nothing can
    be resolved.
    """
    if not event.carries_measurements:
        return None
    measured = event.measurements
    prior = sorted(
        (
            entry
            for entry in history
            if entry.source_event_id != event.id and entry.date <= event.timestamp
        ),
        key=lambda entry: entry.date,
    )
    resolved = {}
    for field in GROWTH_FIELDS:
        value = getattr(measured, field)
        if not value or value <= 0:
            value = _latest_positive(field, prior)
        resolved[field] = value

    if not any(resolved.values()):
        return None
    logger.debug(
        "growth entry resolved",
        extra={"event_id": event.id, "backfilled": [f for f in GROWTH_FIELDS if not getattr(measured, f)]},
    )
    return GrowthEntry(
        date=event.timestamp,
        weight=resolved["weight"] or 0.0,
        height=resolved["height"] or 0.0,
        head_circumference=resolved["head_circumference"] or 0.0,
        source_event_id=event.id,
    )
