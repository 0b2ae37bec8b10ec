from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Recommendation(BaseModel):
    venue_id: str
    venue_slug: str
    match_score: float
    reasoning: str
    title: str
    description: str
    highlights: list[str] = Field(default_factory=list)

    @field_validator("match_score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return max(0.0, min(1.0, value))


class RecommendationResult(BaseModel):
    recommendations: list[Recommendation]
    source: Literal["llm", "fallback", "empty"]
    debug_notes: list[str] = Field(default_factory=list)


class RecommendationRecord(BaseModel):
    """Stored recommendation; never updated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    group_id: str
    venue_id: str
    match_score: float
    reasoning: str
    title: str
    description: str
    highlights: tuple[str, ...] = ()
    model_version: str | None = None
    status: str = "generated"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
