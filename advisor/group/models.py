from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..questions.models import MoodQuestion
from ..venues.models import GeoPoint
from .signals import MoodSignals

MoneyTier = Literal["budget", "moderate", "premium"]
EnergyLabel = Literal["low", "medium", "high"]

MONEY_TIERS: tuple[str, ...] = ("budget", "moderate", "premium")


class EventGroup(BaseModel):
    id: str = Field(..., min_length=1)
    name: str | None = None
    city: str | None = None
    preferred_location: str | None = None
    target_time: str | None = None
    creator_id: str | None = None


class ParticipantPreference(BaseModel):
    group_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    user_id: str | None = None
    user_name: str | None = None
    location: GeoPoint | None = None
    money_preference: MoneyTier = "moderate"
    activity_level: int = Field(default=3, ge=1, le=5)
    mood_responses: MoodSignals = Field(default_factory=MoodSignals)
    last_questions: list[MoodQuestion] = Field(default_factory=list)

    @field_validator("mood_responses", mode="before")
    @classmethod
    def _parse_mood_responses(cls, value):
        return MoodSignals.from_raw(value)


class GroupStats(BaseModel):
    participant_count: int
    avg_activity_level: float
    popular_money_preference: MoneyTier
    money_preference_counts: dict[str, int]
    energy_label: EnergyLabel


class PreferenceSummary(BaseModel):
    headline: str
    summary: str
    vibe_keywords: list[str]
    budget_tier: MoneyTier
    energy_level: EnergyLabel
    time_window: str
    hunger_level: str
    call_to_action: str
