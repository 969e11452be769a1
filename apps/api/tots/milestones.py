"""Predefined milestone catalog merged with persisted (completed or custom) milestones."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .schemas import Milestone, MilestoneCategory


def _predefined(slug: str, title: str, min_weeks: int, max_weeks: int, category: MilestoneCategory, description: str) -> Milestone:
    return Milestone(
        id=f"predefined-{slug}",
        title=title,
        min_age_weeks=min_weeks,
        max_age_weeks=max_weeks,
        category=category,
        description=description,
        is_predefined=True,
    )


PREDEFINED_MILESTONES: tuple[Milestone, ...] = (
    _predefined("first-smile", "First Smile", 6, 8, MilestoneCategory.SOCIAL, "First genuine social smile"),
    _predefined("holds-head-up", "Holds Head Up", 8, 17, MilestoneCategory.MOTOR, "Can hold head steady when upright"),
    _predefined("laughs", "Laughs Out Loud", 13, 17, MilestoneCategory.SOCIAL, "Laughs in response to play"),
    _predefined("rolls-over", "Rolls Over", 17, 26, MilestoneCategory.MOTOR, "Rolls from tummy to back"),
    _predefined("first-tooth", "First Tooth", 26, 43, MilestoneCategory.PHYSICAL, "First tooth has broken through"),
    _predefined("sits", "Sits Without Support", 26, 35, MilestoneCategory.MOTOR, "Can sit upright without falling over"),
    _predefined("object-permanence", "Looks for Hidden Toys", 30, 39, MilestoneCategory.COGNITIVE, "Searches for a toy hidden under a cloth"),
    _predefined("crawls", "Crawls", 30, 43, MilestoneCategory.MOTOR, "Moves forward on hands and knees"),
    _predefined("first-word", "Says First Word", 35, 52, MilestoneCategory.LANGUAGE, "First recognizable word like 'mama' or 'dada'"),
    _predefined("pulls-to-stand", "Pulls to Stand", 39, 52, MilestoneCategory.MOTOR, "Pulls themselves up to standing position"),
)

PREDEFINED_BY_ID: Dict[str, Milestone] = {milestone.id: milestone for milestone in PREDEFINED_MILESTONES}


def merged_milestones(persisted: Iterable[Milestone]) -> List[Milestone]:
    """Catalog overlaid with persisted records; a persisted record wins on id."""
    merged: Dict[str, Milestone] = {milestone.id: milestone for milestone in PREDEFINED_MILESTONES}
    for milestone in persisted:
        merged[milestone.id] = milestone
    return sorted(merged.values(), key=lambda milestone: (milestone.min_age_weeks, milestone.title))


def find_milestone(persisted: Iterable[Milestone], milestone_id: str) -> Optional[Milestone]:
    return next((milestone for milestone in merged_milestones(persisted) if milestone.id == milestone_id), None)
