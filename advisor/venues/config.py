from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum


class DistanceMode(str, Enum):
    # Distance from the participants' centroid.
    centroid = "centroid"
    # Distance to the closest participant.
    nearest = "nearest"


@dataclass(frozen=True)
class ScoringWeights:
    """Empirical match-score weights; tune with product data."""

    base: float = 0.5
    activity_type: float = 0.20
    cuisine: float = 0.15
    preferred_location: float = 0.10
    partner_tier: float = 0.10
    proximity: float = 0.10


@dataclass(frozen=True)
class VenueFilterConfig:
    max_distance_meters: float = float(os.getenv("ADVISOR_MAX_DISTANCE_METERS", "10000"))
    max_results: int = 50
    tie_band: float = 0.05
    distance_mode: DistanceMode = DistanceMode.centroid
    weights: ScoringWeights = field(default_factory=ScoringWeights)


DEFAULT_FILTER_CONFIG = VenueFilterConfig()
