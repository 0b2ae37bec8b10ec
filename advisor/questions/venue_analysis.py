from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Sequence

from ..venues.models import Venue

ACTIVITY_KEYWORDS: tuple[str, ...] = (
    "active", "competitive", "sport", "game", "play", "challenge",
    "relax", "chill", "casual", "cozy", "social", "party", "dance",
    "outdoor", "outside", "park", "nature", "indoor", "inside",
    "adventure", "experience", "workshop", "class", "lesson",
    "tour", "walk", "hike", "bike",
)

ATMOSPHERE_KEYWORDS: tuple[str, ...] = (
    "cozy", "intimate", "lively", "energetic", "quiet", "loud",
    "romantic", "family", "group", "solo", "date", "friends",
)

_INDOOR = {"indoor", "inside"}
_OUTDOOR = {"outdoor", "outside", "park", "nature"}
_ACTIVE = {"active", "competitive", "sport", "challenge"}
_RELAXED = {"relax", "chill", "casual", "cozy"}
_SOCIAL = {"social", "party", "group", "friends"}
_SOLO = {"solo", "quiet", "intimate"}
_FOOD_WORDS = ("restaurant", "dining", "food", "cafe")

FACTOR_SETTING = "indoor vs outdoor preference"
FACTOR_INTENSITY = "activity intensity preference"
FACTOR_SOCIAL = "social atmosphere preference"
FACTOR_VARIETY = "venue type variety"


@dataclass
class VenueAnalysis:
    venue_types: list[str] = field(default_factory=list)
    key_characteristics: list[str] = field(default_factory=list)
    differentiating_factors: list[str] = field(default_factory=list)

    @property
    def has_food(self) -> bool:
        return any(
            word in t.lower() for t in self.venue_types for word in ("restaurant", "cafe", "dining")
        )

    def mentions(self, word: str) -> bool:
        return any(word in f for f in self.differentiating_factors)


@dataclass
class VenueTraits:
    has_indoor: bool = False
    has_outdoor: bool = False
    has_active: bool = False
    has_relaxed: bool = False
    has_food: bool = False


def _normalize_type(venue_type: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), venue_type.replace("_", " "))


def analyze_venues(
    venues: Sequence[Venue],
    rng: random.Random,
    sample_size: int = 12,
) -> VenueAnalysis | None:
    """
    Look for the traits that split a random venue sample.

    Sampling keeps repeated calls over the same pool from always surfacing
    the same factors. Returns ``None`` when there are no venues.
    """
    if not venues:
        return None

    shuffled = list(venues)
    rng.shuffle(shuffled)
    sample = shuffled[: min(sample_size, len(shuffled))]

    venue_types: dict[str, None] = {}
    keywords: set[str] = set()
    characteristics: dict[str, None] = {}

    for venue in sample:
        venue_types[_normalize_type(venue.type)] = None
        if not venue.description:
            continue
        desc = venue.description.lower()
        keywords.update(k for k in ACTIVITY_KEYWORDS if k in desc)
        for word in ATMOSPHERE_KEYWORDS:
            if word in desc:
                characteristics[word] = None

    factors: list[str] = []
    if keywords & _INDOOR and keywords & _OUTDOOR:
        factors.append(FACTOR_SETTING)
    if keywords & _ACTIVE and keywords & _RELAXED:
        factors.append(FACTOR_INTENSITY)
    if keywords & _SOCIAL and keywords & _SOLO:
        factors.append(FACTOR_SOCIAL)
    if len(venue_types) > 3:
        factors.append(FACTOR_VARIETY)

    return VenueAnalysis(
        venue_types=list(venue_types)[:6],
        key_characteristics=list(characteristics)[:5],
        differentiating_factors=factors[:3],
    )


def detect_traits(venues: Sequence[Venue], window: int = 10) -> VenueTraits:
    """Keyword traits over the descriptions of the top *window* venues."""
    text = " ".join((v.description or "").lower() for v in venues[:window])
    return VenueTraits(
        has_indoor="indoor" in text or "inside" in text,
        has_outdoor=any(w in text for w in ("outdoor", "park", "nature")),
        has_active=any(w in text for w in ("active", "competitive", "sport")),
        has_relaxed=any(w in text for w in ("relax", "chill", "cozy")),
        has_food=any(w in text for w in _FOOD_WORDS),
    )
