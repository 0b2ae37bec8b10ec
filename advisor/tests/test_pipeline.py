from __future__ import annotations

import json
import random
from unittest.mock import MagicMock, patch

import pytest

from advisor.cache import TTLCache
from advisor.errors import NotFoundError
from advisor.group.models import EventGroup, ParticipantPreference
from advisor.group.store import GroupStore, PreferenceStore
from advisor.llm.config import LLMConfig
from advisor.pipeline import FALLBACK_MODEL_VERSION, AdvisorPipeline
from advisor.recommendations.store import RecommendationStore
from advisor.venues.data_store import VenueStore
from advisor.venues.models import GeoPoint, UserPreferenceProfile, Venue

DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)
ENABLED_CONFIG = LLMConfig(api_key="test-key", model="test-model", enabled=True)

VENUES = [
    Venue(
        id="bowling", slug="bowling", name="Bowling", type="bowling", city="Espoo",
        location=GeoPoint(latitude=60.176, longitude=24.825),
        description="Indoor bowling lanes, competitive and fun", partner_tier="gold",
    ),
    Venue(
        id="cafe", slug="cafe", name="Park Cafe", type="cafe", city="Espoo",
        location=GeoPoint(latitude=60.174, longitude=24.826),
        description="Relaxed cafe with outdoor seating and food",
    ),
    Venue(
        id="sauna", slug="sauna", name="Sauna", type="sauna", city="Espoo",
        location=GeoPoint(latitude=60.178, longitude=24.822),
        description="Chill seaside sauna",
    ),
    Venue(
        id="arcade", slug="arcade", name="Arcade", type="arcade", city="Helsinki",
        location=GeoPoint(latitude=60.176, longitude=24.826),
        description="Indoor games",
    ),
]


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _pipeline(llm_config=DISABLED_CONFIG) -> AdvisorPipeline:
    group_store = GroupStore()
    group_store.create(EventGroup(id="g1", name="Friday", city="Espoo", creator_id="u1"))

    preference_store = PreferenceStore()
    preference_store.save_profile(UserPreferenceProfile(user_id="u1", activity_types=["bowling"]))
    preference_store.upsert(ParticipantPreference(
        group_id="g1", session_id="s1", user_id="u1", user_name="Aino",
        location=GeoPoint(latitude=60.17, longitude=24.82), activity_level=4,
    ))
    preference_store.upsert(ParticipantPreference(
        group_id="g1", session_id="s2", user_name="Mikko",
        location=GeoPoint(latitude=60.18, longitude=24.83), money_preference="budget",
    ))

    return AdvisorPipeline(
        VenueStore.from_venues(VENUES),
        preference_store,
        group_store,
        RecommendationStore(),
        TTLCache(),
        llm_config=llm_config,
        rng=random.Random(7),
    )


def test_mood_questions_are_recorded():
    pipeline = _pipeline()

    result = pipeline.mood_questions("g1", "s1", time_of_day="evening")

    assert 1 <= len(result.questions) <= 3
    assert all(len(q.options) == 3 for q in result.questions)
    assert pipeline.preference_store.get("g1", "s1").last_questions == result.questions


def test_answered_signals_are_not_asked_again():
    pipeline = _pipeline()
    first = pipeline.mood_questions("g1", "s1", time_of_day="evening")
    asked = first.questions[0].signal_key

    pipeline.submit_answers("g1", "s1", {asked: first.questions[0].options[0]})
    second = pipeline.mood_questions("g1", "s1", time_of_day="evening")

    assert asked not in {q.signal_key for q in second.questions}


def test_submit_answers_updates_activity():
    pipeline = _pipeline()

    updated = pipeline.submit_answers("g1", "s2", {"currentEnergy": "Hype"}, activity_level=5)

    assert updated.activity_level == 5
    assert updated.mood_responses.get("currentEnergy") == "Hype"


def test_recommend_persists_fallback_picks():
    pipeline = _pipeline()

    records = pipeline.recommend("g1")

    assert [r.venue_id for r in records] == ["bowling", "cafe", "sauna"]
    assert all(r.group_id == "g1" for r in records)
    assert all(r.model_version == FALLBACK_MODEL_VERSION for r in records)
    assert pipeline.recommendation_store.list_for_group("g1") == records


@patch("advisor.llm.groq_client.Groq")
def test_recommend_with_llm(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(json.dumps({
        "recommendations": [
            {
                "venue_id": venue_id,
                "venue_slug": venue_id,
                "match_score": 0.9,
                "reasoning": "Good fit.",
                "title": venue_id.title(),
                "description": "Nice.",
                "highlights": ["close"],
            }
            for venue_id in ("sauna", "cafe", "bowling")
        ],
    }))
    pipeline = _pipeline(ENABLED_CONFIG)

    records = pipeline.recommend("g1")

    assert [r.venue_id for r in records] == ["sauna", "cafe", "bowling"]
    assert all(r.model_version == "test-model" for r in records)


def test_unknown_group_or_session():
    pipeline = _pipeline()

    with pytest.raises(NotFoundError):
        pipeline.recommend("missing")
    with pytest.raises(NotFoundError):
        pipeline.mood_questions("g1", "missing")


def test_context_manager_runs_sweeper():
    pipeline = _pipeline()

    with pipeline:
        assert pipeline.cache.running

    assert not pipeline.cache.running
