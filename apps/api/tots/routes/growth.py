from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..schemas import GrowthEntry, GrowthPercentiles
from ..tracker import Tracker
from ..units import format_length, format_weight
from .deps import get_tracker

router = APIRouter(prefix="/api/v1", tags=["growth"])


class GrowthEntryOut(GrowthEntry):
    weight_label: str
    height_label: str
    head_circumference_label: str


def _with_labels(entry: GrowthEntry, tracker: Tracker) -> GrowthEntryOut:
    units = tracker.profile.unit_system
    return GrowthEntryOut(
        **entry.model_dump(),
        weight_label=format_weight(entry.weight, units),
        height_label=format_length(entry.height, units),
        head_circumference_label=format_length(entry.head_circumference, units),
    )


@router.get("/growth", response_model=List[GrowthEntryOut])
async def list_growth_entries(tracker: Tracker = Depends(get_tracker)) -> List[GrowthEntryOut]:
    """Growth history, oldest first, with values formatted in the profile's unit system."""
    return [_with_labels(entry, tracker) for entry in tracker.growth_entries()]


@router.get("/growth/{entry_id}/percentiles", response_model=GrowthPercentiles)
async def growth_percentiles(entry_id: str, tracker: Tracker = Depends(get_tracker)) -> GrowthPercentiles:
    entry = tracker.store.growth_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Growth entry {entry_id} not found")
    return tracker.percentiles_for(entry)
