from __future__ import annotations

import json
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from unittest.mock import MagicMock, patch

from advisor.cache import TTLCache
from advisor.group.models import EventGroup
from advisor.group.signals import MoodSignals
from advisor.group.stats import compute_group_stats
from advisor.group.summary import build_preference_summary
from advisor.llm.config import LLMConfig
from advisor.questions.selector import MoodCheckRequest, QuestionSelector
from advisor.questions.themes import QUESTION_THEMES
from advisor.questions.venue_analysis import VenueAnalysis
from advisor.venues.models import Venue

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)

STATS = compute_group_stats([])
SUMMARY = build_preference_summary(EventGroup(id="g1"), STATS, MoodSignals())

VENUES = [
    Venue(id="1", slug="bowl", name="Bowl", type="bowling", description="Indoor bowling for groups"),
    Venue(id="2", slug="bistro", name="Bistro", type="restaurant", description="Cozy restaurant"),
]

FACTUAL_AND_CONSTRAINT_KEYS = {
    "timeAvailability", "budgetSensitivity", "hungerLevel", "weatherDependency",
}


class StubRandom(random.Random):
    """No jitter and no shuffling, so ranking follows the catalog order."""

    def random(self):
        return 0.0

    def shuffle(self, x):
        pass


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _selector(llm_config=DISABLED_CONFIG, rng=None) -> QuestionSelector:
    return QuestionSelector(
        TTLCache(),
        rng=rng or StubRandom(),
        llm_config=llm_config,
        now=lambda: datetime(2026, 5, 1, 19, 0),
    )


def _request(answered=None, venues=VENUES, time_of_day="evening") -> MoodCheckRequest:
    return MoodCheckRequest(
        stats=STATS,
        summary=SUMMARY,
        answered_signals=MoodSignals.from_raw(answered or {}),
        time_of_day=time_of_day,
        venues=venues,
        participant_name="Aino",
    )


def _llm_question(signal_key="hungerLevel", options=None):
    return {
        "id": "q1",
        "prompt": "How hungry is everyone?",
        "type": "choice",
        "signal_key": signal_key,
        "options": options if options is not None else ["Snack", "Meal"],
        "suggested_response": "",
        "reason": "Food spots nearby",
    }


# ── Theme selection ─────────────────────────────────────────────────────


class TestThemeSelection:
    def test_one_theme_per_category_in_catalog_order(self):
        themes = _selector().select_themes(set(), None, None)

        assert [t.id for t in themes] == ["time-availability", "budget-sensitivity", "energy-level"]

    def test_food_context_promotes_hunger(self):
        analysis = VenueAnalysis(venue_types=["Restaurant"])

        themes = _selector().select_themes(set(), None, analysis)

        assert themes[0].id == "hunger-level"
        assert {t.category for t in themes} == {"factual", "constraint", "preference"}

    def test_only_preference_themes_left(self):
        themes = _selector().select_themes(FACTUAL_AND_CONSTRAINT_KEYS, None, None)

        assert len(themes) == 3
        assert all(t.category == "preference" for t in themes)
        assert all(t.signal_key not in FACTUAL_AND_CONSTRAINT_KEYS for t in themes)

    def test_two_categories_left_are_both_used(self):
        answered = {"timeAvailability", "hungerLevel"}

        for seed in range(20):
            themes = _selector(rng=random.Random(seed)).select_themes(answered, "evening", None)

            assert len(themes) == 3
            assert {t.category for t in themes} == {"constraint", "preference"}

    def test_everything_answered(self):
        answered = {t.signal_key for t in QUESTION_THEMES}

        assert _selector().select_themes(answered, "evening", None) == []

    def test_seeded_rng_is_reproducible(self):
        first = _selector(rng=random.Random(42)).select_themes(set(), "evening", None)
        second = _selector(rng=random.Random(42)).select_themes(set(), "evening", None)

        assert [t.id for t in first] == [t.id for t in second]
        assert len({t.category for t in first}) > 1


# ── Selection with caching ──────────────────────────────────────────────


class TestSelect:
    def test_fallback_when_llm_disabled(self):
        result = _selector().select(_request())

        assert result.debug_notes == ["mood-agent-fallback"]
        assert 1 <= len(result.questions) <= 3
        assert all(len(q.options) == 3 for q in result.questions)

    def test_second_call_hits_cache(self):
        selector = _selector()

        first = selector.select(_request())
        second = selector.select(_request())

        assert first == second
        assert selector.cache.stats()["hits"] == 1
        assert len(selector.cache) == 1

    def test_time_bucket_is_part_of_the_key(self):
        selector = _selector()

        selector.select(_request(time_of_day="evening"))
        selector.select(_request(time_of_day="morning"))

        assert len(selector.cache) == 2

    def test_missing_time_uses_clock(self):
        selector = _selector()

        selector.select(_request(time_of_day=None))
        selector.select(_request(time_of_day="evening"))

        assert len(selector.cache) == 1

    def test_cached_result_is_a_copy(self):
        selector = _selector()

        first = selector.select(_request())
        first.questions.clear()

        assert selector.select(_request()).questions

    @patch("advisor.llm.groq_client.Groq")
    def test_all_themes_answered_skips_llm(self, mock_groq_cls):
        answered = {t.signal_key: "yes" for t in QUESTION_THEMES}

        result = _selector(ENABLED_CONFIG).select(_request(answered=answered))

        assert result.debug_notes == ["all-themes-answered"]
        assert result.questions
        mock_groq_cls.assert_not_called()

    @patch("advisor.llm.groq_client.Groq")
    def test_llm_questions_are_normalised(self, mock_groq_cls):
        create = mock_groq_cls.return_value.chat.completions.create
        create.return_value = _mock_groq_response(json.dumps({
            "questions": [_llm_question()],
            "follow_up": "",
        }))
        selector = _selector(ENABLED_CONFIG)

        result = selector.select(_request())
        selector.select(_request())

        assert result.debug_notes[0] == "llm"
        question = result.questions[0]
        assert question.options == ["Snack", "Meal", "Option 1"]
        assert question.suggested_response is None
        assert question.reason == "Food spots nearby"
        assert result.follow_up is None
        assert create.call_count == 1

    @patch("advisor.llm.groq_client.Groq")
    def test_llm_failure_caches_fallback(self, mock_groq_cls):
        create = mock_groq_cls.return_value.chat.completions.create
        create.side_effect = Exception("API timeout")
        selector = _selector(ENABLED_CONFIG)

        first = selector.select(_request())
        second = selector.select(_request())

        assert first.debug_notes == ["mood-agent-fallback"]
        assert first == second
        assert create.call_count == 1

    @patch("advisor.llm.groq_client.Groq")
    def test_invalid_llm_payload_uses_fallback(self, mock_groq_cls):
        mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
            json.dumps({"questions": [{"id": "q1"}]})
        )

        result = _selector(ENABLED_CONFIG).select(_request())

        assert result.debug_notes == ["mood-agent-fallback"]

    @patch("advisor.llm.groq_client.Groq")
    def test_llm_questions_on_answered_keys_are_dropped(self, mock_groq_cls):
        mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
            json.dumps({"questions": [_llm_question("hungerLevel")], "follow_up": "Anything else?"})
        )

        result = _selector(ENABLED_CONFIG).select(_request(answered={"hungerLevel": "Full meal"}))

        assert result.debug_notes == ["mood-agent-fallback"]
        assert all(q.signal_key != "hungerLevel" for q in result.questions)

    @patch("advisor.llm.groq_client.Groq")
    def test_concurrent_misses_share_one_llm_call(self, mock_groq_cls):
        payload = json.dumps({"questions": [_llm_question()], "follow_up": ""})

        def slow_create(**kwargs):
            time.sleep(0.2)
            return _mock_groq_response(payload)

        create = mock_groq_cls.return_value.chat.completions.create
        create.side_effect = slow_create
        selector = _selector(ENABLED_CONFIG)
        barrier = threading.Barrier(8)

        def ask():
            barrier.wait()
            return selector.select(_request())

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(ask) for _ in range(8)]
            results = [f.result() for f in futures]

        assert create.call_count == 1
        assert all(r == results[0] for r in results)
        assert results[0].debug_notes[0] == "llm"
