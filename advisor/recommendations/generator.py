from __future__ import annotations

import logging
from typing import Sequence

from pydantic import BaseModel, Field, ValidationError

from ..group.models import GroupStats, PreferenceSummary
from ..group.signals import MoodSignals
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import request_structured
from ..llm.schema import response_schema
from ..venues.models import FilteredVenue
from .models import Recommendation, RecommendationResult

logger = logging.getLogger(__name__)

MAX_CONTEXT_VENUES = 30
MIN_RECOMMENDATIONS = 3
MAX_RECOMMENDATIONS = 5
MAX_HIGHLIGHTS = 5

RECOMMENDER_SYSTEM_PROMPT = (
    "You are an event recommendation agent for friend groups. "
    "Generate personalized event recommendations based on group preferences, "
    "mood responses, and available venues. Match venues to the group's energy "
    "level, budget, and current mood. Only use venue ids from availableVenues."
)


class _RecommendationPayload(BaseModel):
    venue_id: str
    venue_slug: str
    match_score: float
    reasoning: str
    title: str
    description: str
    highlights: list[str] = Field(..., min_length=1)


class _RecommendationsPayload(BaseModel):
    recommendations: list[_RecommendationPayload] = Field(..., min_length=1, max_length=10)


RECOMMENDATIONS_SCHEMA = response_schema(_RecommendationsPayload)


# ---------------------------------------------------------------------------
# Prompt context
# ---------------------------------------------------------------------------


def _distance_km(venue: FilteredVenue) -> str | None:
    if venue.distance_meters is None:
        return None
    return f"{venue.distance_meters / 1000:.1f}"


def build_venue_context(venues: Sequence[FilteredVenue]) -> list[dict]:
    return [
        {
            "id": v.id,
            "slug": v.slug,
            "name": v.name,
            "type": v.type,
            "description": v.description or "",
            "address": v.address or "",
            "distanceKm": _distance_km(v),
            "partnerTier": v.partner_tier,
        }
        for v in venues[:MAX_CONTEXT_VENUES]
    ]


def build_prompt(
    summary: PreferenceSummary,
    stats: GroupStats,
    signals: MoodSignals,
    venues: Sequence[FilteredVenue],
) -> dict:
    return {
        "groupContext": {
            "participantCount": stats.participant_count,
            "energyLevel": stats.energy_label,
            "budgetTier": stats.popular_money_preference,
            "avgActivityLevel": round(stats.avg_activity_level, 2),
        },
        "preferences": {
            "summary": summary.summary,
            "vibeKeywords": summary.vibe_keywords,
            "timeWindow": summary.time_window,
            "hungerLevel": summary.hunger_level,
        },
        "moodResponses": signals.as_dict(),
        "availableVenues": build_venue_context(venues),
        "instructions": [
            "Select the best venues from the available list that match the group's preferences and mood.",
            f"Generate {MIN_RECOMMENDATIONS}-{MAX_RECOMMENDATIONS} recommendations with match scores, reasoning, and highlights.",
            "Consider distance, venue type, and group preferences.",
        ],
    }


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------


def _fallback_recommendation(venue: FilteredVenue, stats: GroupStats) -> Recommendation:
    distance_text = (
        f"{venue.distance_meters / 1000:.1f}km away"
        if venue.distance_meters is not None
        else "Location available"
    )
    highlights = [venue.type, distance_text]
    if venue.partner_tier:
        highlights.append(f"{venue.partner_tier} partner")

    return Recommendation(
        venue_id=venue.id,
        venue_slug=venue.slug,
        match_score=venue.match_score,
        reasoning=(
            f"Matches group's {stats.energy_label} energy and "
            f"{stats.popular_money_preference} budget preference. "
            f"{venue.description or 'Great option for the group.'}"
        ),
        title=venue.name,
        description=venue.description or f"A {venue.type} venue perfect for your group.",
        highlights=highlights,
    )


def fallback_recommendations(
    venues: Sequence[FilteredVenue],
    stats: GroupStats,
) -> list[Recommendation]:
    """Top venues by match score with templated copy; fully deterministic."""
    ranked = sorted(venues, key=lambda v: v.match_score, reverse=True)
    return [_fallback_recommendation(v, stats) for v in ranked[:MAX_RECOMMENDATIONS]]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


def _accept_llm_picks(
    payload: _RecommendationsPayload,
    venues: Sequence[FilteredVenue],
    stats: GroupStats,
) -> list[Recommendation]:
    by_id = {v.id: v for v in venues}
    accepted: list[Recommendation] = []
    seen: set[str] = set()

    for item in payload.recommendations:
        venue = by_id.get(item.venue_id)
        if venue is None or venue.id in seen:
            logger.debug("Dropping LLM pick for unknown venue %s", item.venue_id)
            continue
        seen.add(venue.id)
        accepted.append(Recommendation(
            venue_id=venue.id,
            venue_slug=venue.slug,
            match_score=item.match_score,
            reasoning=item.reasoning,
            title=item.title,
            description=item.description,
            highlights=[h for h in item.highlights if h.strip()][:MAX_HIGHLIGHTS],
        ))
        if len(accepted) >= MAX_RECOMMENDATIONS:
            break

    # Top up thin LLM answers from the heuristic ranking.
    target = min(MIN_RECOMMENDATIONS, len(venues))
    if accepted and len(accepted) < target:
        for extra in fallback_recommendations(venues, stats):
            if len(accepted) >= target:
                break
            if extra.venue_id not in seen:
                seen.add(extra.venue_id)
                accepted.append(extra)

    return accepted


def generate_recommendations(
    summary: PreferenceSummary,
    stats: GroupStats,
    signals: MoodSignals,
    venues: Sequence[FilteredVenue],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> RecommendationResult:
    """
    Rank *venues* for the group. Uses one structured LLM call when
    available; any failure falls through to ``fallback_recommendations``.
    """
    if not venues:
        return RecommendationResult(
            recommendations=[], source="empty", debug_notes=["no-filtered-venues"],
        )

    raw = request_structured(
        RECOMMENDER_SYSTEM_PROMPT,
        build_prompt(summary, stats, signals, venues),
        schema_name="event_recommendations",
        schema=RECOMMENDATIONS_SCHEMA,
        temperature=0.6,
        config=config,
    )

    if raw is not None:
        try:
            parsed = _RecommendationsPayload.model_validate(raw)
            accepted = _accept_llm_picks(parsed, venues, stats)
            if accepted:
                return RecommendationResult(
                    recommendations=accepted, source="llm", debug_notes=["llm"],
                )
            logger.warning("LLM recommendations referenced no known venues, using fallback")
        except ValidationError:
            logger.warning(
                "LLM recommendations failed validation, using fallback", exc_info=True,
            )

    return RecommendationResult(
        recommendations=fallback_recommendations(venues, stats),
        source="fallback",
        debug_notes=["fallback-mode"],
    )
