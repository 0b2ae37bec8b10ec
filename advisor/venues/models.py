from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GeoPoint(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)


class Venue(BaseModel):
    id: str = Field(..., min_length=1)
    slug: str
    name: str
    type: str
    city: str = ""
    address: str | None = None
    location: GeoPoint | None = None
    description: str | None = None
    partner_tier: str | None = None
    tags: list[str] = Field(default_factory=list)


class FilteredVenue(Venue):
    distance_meters: float | None = None
    match_score: float = 0.0

    @field_validator("match_score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return max(0.0, min(1.0, value))


class UserPreferenceProfile(BaseModel):
    """Long-lived profile a user fills in during onboarding."""

    user_id: str
    activity_types: list[str] = Field(default_factory=list)
    cuisine_preferences: list[str] = Field(default_factory=list)
    preferred_locations: list[str] = Field(default_factory=list)
