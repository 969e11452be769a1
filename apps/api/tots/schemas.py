"""Pydantic schemas shared across the tracker and the API."""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _new_id() -> str:
    return str(uuid4())


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventCategory(str, Enum):
    FEEDING = "feeding"
    PUMPING = "pumping"
    DIAPER = "diaper"
    SLEEP = "sleep"
    MILESTONE = "milestone"
    ACTIVITY = "activity"
    GROWTH = "growth"


class Mood(str, Enum):
    HAPPY = "happy"
    CONTENT = "content"
    SLEEPY = "sleepy"
    FUSSY = "fussy"
    CURIOUS = "curious"
    NEUTRAL = "neutral"


class Measurements(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight: Optional[float] = Field(default=None, ge=0, description="kg")
    height: Optional[float] = Field(default=None, ge=0, description="cm")
    head_circumference: Optional[float] = Field(default=None, ge=0, description="cm")

    def has_any(self) -> bool:
        return any(value for value in (self.weight, self.height, self.head_circumference))


class CareEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    category: EventCategory
    timestamp: datetime = Field(description="When the event happened, not when it was logged")
    label: str = ""
    mood: Mood = Mood.NEUTRAL
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    note: Optional[str] = None
    measurements: Optional[Measurements] = None

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @property
    def carries_measurements(self) -> bool:
        return self.measurements is not None and self.measurements.has_any()


class GrowthEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    date: datetime
    weight: float = Field(ge=0)
    height: float = Field(ge=0)
    head_circumference: float = Field(ge=0)
    source_event_id: Optional[str] = Field(
        default=None,
        description="CareEvent this entry was derived from",
    )

    @field_validator("date")
    @classmethod
    def _aware_date(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class MilestoneCategory(str, Enum):
    MOTOR = "motor"
    LANGUAGE = "language"
    SOCIAL = "social"
    COGNITIVE = "cognitive"
    PHYSICAL = "physical"


class Milestone(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    min_age_weeks: int = Field(ge=0)
    max_age_weeks: int = Field(ge=0)
    category: MilestoneCategory
    description: str = ""
    is_predefined: bool = False
    is_completed: bool = False
    completed_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_window(self) -> "Milestone":
        if self.max_age_weeks < self.min_age_weeks:
            raise ValueError("max_age_weeks must be >= min_age_weeks")
        if not self.is_completed and self.completed_date is not None:
            raise ValueError("completed_date is only set on completed milestones")
        return self


class WordCategory(str, Enum):
    PEOPLE = "people"
    ANIMALS = "animals"
    FOOD = "food"
    OBJECTS = "objects"
    ACTIONS = "actions"
    SOUNDS = "sounds"
    OTHER = "other"


class VocabularyWord(BaseModel):
    id: str = Field(default_factory=_new_id)
    word: str = Field(..., min_length=1)
    category: WordCategory = WordCategory.OTHER
    date_first_said: datetime
    notes: Optional[str] = None

    @field_validator("date_first_said")
    @classmethod
    def _aware_date(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class WeeklyGoals(BaseModel):
    feedings: int = Field(default=56, gt=0)
    sleep_hours: float = Field(default=105.0, gt=0)
    diapers: int = Field(default=42, gt=0)
    tummy_time_minutes: int = Field(default=350, gt=0)


class SubjectProfile(BaseModel):
    name: str = "Baby"
    birth_date: date = Field(default_factory=date.today)
    gender: Optional[Gender] = None
    unit_system: UnitSystem = UnitSystem.METRIC
    timezone: str = Field(default="UTC", description="IANA name used for calendar days")
    weekly_goals: WeeklyGoals = Field(default_factory=WeeklyGoals)
    interval_overrides: Dict[EventCategory, float] = Field(
        default_factory=dict,
        description="Hours between expected events, per category",
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @field_validator("interval_overrides")
    @classmethod
    def _positive_intervals(cls, value: Dict[EventCategory, float]) -> Dict[EventCategory, float]:
        for category, hours in value.items():
            if hours <= 0:
                raise ValueError(f"interval for {category.value} must be positive")
        return value


class Snapshot(BaseModel):
    """Everything the tracker needs to be rebuilt, in load/save order."""

    events: List[CareEvent] = Field(default_factory=list)
    growth_entries: List[GrowthEntry] = Field(default_factory=list)
    milestones: List[Milestone] = Field(default_factory=list)
    words: List[VocabularyWord] = Field(default_factory=list)
    profile: SubjectProfile = Field(default_factory=SubjectProfile)


class DayStats(BaseModel):
    day: date
    feedings: int = 0
    diapers: int = 0
    milestones: int = 0
    sleep_hours: float = 0.0
    tummy_time_minutes: int = 0
    play_minutes: int = 0
    activities: int = 0


class WeeklyProgress(BaseModel):
    feedings: float
    diapers: float
    sleep: float
    tummy_time: float


class InsightType(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    EXCITING = "exciting"
    WARNING = "warning"


class Insight(BaseModel):
    id: str
    title: str
    description: str
    type: InsightType
    confidence: float = Field(ge=0, le=1)


class SuggestionPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Suggestion(BaseModel):
    id: str
    title: str
    description: str
    action: str
    priority: SuggestionPriority


class Countdown(BaseModel):
    category: EventCategory
    next_expected_at: datetime
    seconds_remaining: Optional[float] = Field(
        default=None,
        description="None while an in-progress session is active for the category",
    )
    label: Optional[str] = None


class GrowthPercentiles(BaseModel):
    entry_id: str
    age_months: int
    weight: Optional[int] = None
    height: Optional[int] = None
    head_circumference: Optional[int] = None
    bmi: Optional[int] = None
