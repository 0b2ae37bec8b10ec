from __future__ import annotations

import logging
import math
from functools import cmp_to_key
from typing import Sequence

from ..group.models import ParticipantPreference
from .config import DEFAULT_FILTER_CONFIG, DistanceMode, ScoringWeights, VenueFilterConfig
from .data_store import VenueStore
from .geo import haversine_distance
from .models import FilteredVenue, GeoPoint, UserPreferenceProfile, Venue

logger = logging.getLogger(__name__)


def _any_substring(needles: Sequence[str], haystack: str | None) -> bool:
    if not haystack:
        return False
    lower = haystack.lower()
    return any(n.strip() and n.strip().lower() in lower for n in needles)


def participant_locations(preferences: Sequence[ParticipantPreference]) -> list[GeoPoint]:
    return [p.location for p in preferences if p.location is not None]


def centroid(points: Sequence[GeoPoint]) -> GeoPoint | None:
    """Unweighted mean of *points*, or ``None`` when there are none."""
    if not points:
        return None
    return GeoPoint(
        latitude=sum(p.latitude for p in points) / len(points),
        longitude=sum(p.longitude for p in points) / len(points),
    )


def score_venue(
    venue: Venue,
    profile: UserPreferenceProfile | None,
    distance_meters: float | None,
    max_distance_meters: float,
    weights: ScoringWeights,
) -> float:
    """Heuristic preference/partner/proximity score, clamped to [0, 1]."""
    score = weights.base

    if profile is not None:
        if _any_substring(profile.activity_types, venue.type):
            score += weights.activity_type
        if _any_substring(profile.cuisine_preferences, venue.description):
            score += weights.cuisine
        if _any_substring(profile.preferred_locations, venue.address):
            score += weights.preferred_location

    if venue.partner_tier:
        score += weights.partner_tier

    if distance_meters is not None and max_distance_meters > 0:
        proximity = max(0.0, 1.0 - distance_meters / max_distance_meters)
        score += proximity * weights.proximity

    return max(0.0, min(1.0, score))


def _compare(a: FilteredVenue, b: FilteredVenue, tie_band: float) -> int:
    if abs(a.match_score - b.match_score) > tie_band:
        return -1 if a.match_score > b.match_score else 1
    # Close scores: prefer the nearer venue, unknown distance last
    dist_a = a.distance_meters if a.distance_meters is not None else math.inf
    dist_b = b.distance_meters if b.distance_meters is not None else math.inf
    return (dist_a > dist_b) - (dist_a < dist_b)


class VenueFilter:
    """Geo and preference filtering over the venue store."""

    def __init__(
        self,
        store: VenueStore,
        config: VenueFilterConfig = DEFAULT_FILTER_CONFIG,
    ) -> None:
        self.store = store
        self.config = config

    def filter(
        self,
        preferences: Sequence[ParticipantPreference],
        user_preference: UserPreferenceProfile | None = None,
        max_distance_meters: float | None = None,
        city: str | None = None,
    ) -> list[FilteredVenue]:
        candidates = self.store.find(city=city)
        return self.rank(preferences, candidates, user_preference, max_distance_meters)

    def rank(
        self,
        preferences: Sequence[ParticipantPreference],
        candidates: Sequence[Venue],
        user_preference: UserPreferenceProfile | None = None,
        max_distance_meters: float | None = None,
    ) -> list[FilteredVenue]:
        """Score *candidates* that pass the distance cap, best first, top N."""
        max_distance = (
            self.config.max_distance_meters
            if max_distance_meters is None
            else max_distance_meters
        )
        locations = participant_locations(preferences)
        reference = (
            centroid(locations)
            if self.config.distance_mode is DistanceMode.centroid
            else None
        )

        filtered: list[FilteredVenue] = []
        for venue in candidates:
            if venue.location is None:
                continue

            distance: float | None = None
            if reference is not None:
                distance = haversine_distance(
                    reference.latitude, reference.longitude,
                    venue.location.latitude, venue.location.longitude,
                )
            elif locations:
                distance = min(
                    haversine_distance(
                        loc.latitude, loc.longitude,
                        venue.location.latitude, venue.location.longitude,
                    )
                    for loc in locations
                )

            if distance is not None and distance > max_distance:
                continue

            score = score_venue(
                venue, user_preference, distance, max_distance, self.config.weights,
            )
            filtered.append(
                FilteredVenue(
                    **venue.model_dump(),
                    distance_meters=distance,
                    match_score=score,
                )
            )

        tie_band = self.config.tie_band
        filtered.sort(key=cmp_to_key(lambda a, b: _compare(a, b, tie_band)))

        logger.debug(
            "Venue filter kept %d of %d candidates", len(filtered), len(candidates),
        )
        return filtered[: self.config.max_results]
