from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping

from .cache import TTLCache
from .group.models import EventGroup, ParticipantPreference
from .group.stats import aggregate_mood_signals, compute_group_stats
from .group.store import GroupStore, PreferenceStore
from .group.summary import build_preference_summary
from .llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .questions.config import DEFAULT_QUESTION_CONFIG, QuestionConfig
from .questions.models import MoodCheckResult
from .questions.selector import MoodCheckRequest, QuestionSelector
from .recommendations.generator import generate_recommendations
from .recommendations.models import RecommendationRecord
from .recommendations.store import RecommendationStore, save_recommendations
from .venues.config import DEFAULT_FILTER_CONFIG, VenueFilterConfig
from .venues.data_store import VenueStore
from .venues.filter import VenueFilter
from .venues.models import FilteredVenue

logger = logging.getLogger(__name__)

FALLBACK_MODEL_VERSION = "heuristic-fallback"


class AdvisorPipeline:
    """
    End-to-end flow for one event group: filter venues, ask mood
    questions, record answers, and produce persisted recommendations.

    Call ``start()`` (or use it as a context manager) to run the question
    cache sweeper; without it expired entries are still dropped on read.
    """

    def __init__(
        self,
        venue_store: VenueStore,
        preference_store: PreferenceStore,
        group_store: GroupStore,
        recommendation_store: RecommendationStore,
        cache: TTLCache[MoodCheckResult] | None = None,
        *,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        filter_config: VenueFilterConfig = DEFAULT_FILTER_CONFIG,
        question_config: QuestionConfig = DEFAULT_QUESTION_CONFIG,
        rng: random.Random | None = None,
    ) -> None:
        self.venue_store = venue_store
        self.preference_store = preference_store
        self.group_store = group_store
        self.recommendation_store = recommendation_store
        if cache is None:
            cache = TTLCache(
                default_ttl=question_config.cache_ttl_seconds,
                sweep_interval=question_config.sweep_interval_seconds,
            )
        self.cache = cache
        self.llm_config = llm_config
        self.venue_filter = VenueFilter(venue_store, filter_config)
        self.selector = QuestionSelector(
            self.cache, rng=rng, llm_config=llm_config, config=question_config,
        )

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        self.cache.start()

    def stop(self) -> None:
        self.cache.stop()

    def __enter__(self) -> AdvisorPipeline:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -- operations --------------------------------------------------------

    def mood_questions(
        self,
        group_id: str,
        session_id: str,
        time_of_day: str | None = None,
    ) -> MoodCheckResult:
        group = self.group_store.get(group_id)
        participant = self.preference_store.get(group_id, session_id)
        preferences = self.preference_store.list_for_group(group_id)

        stats = compute_group_stats(preferences)
        summary = build_preference_summary(group, stats, aggregate_mood_signals(preferences))
        venues = self._filtered_venues(group, preferences)

        result = self.selector.select(MoodCheckRequest(
            stats=stats,
            summary=summary,
            answered_signals=participant.mood_responses,
            time_of_day=time_of_day,
            venues=venues,
            participant_name=participant.user_name,
        ))
        self.preference_store.record_questions(group_id, session_id, result.questions)
        return result

    def submit_answers(
        self,
        group_id: str,
        session_id: str,
        answers: Mapping[str, Any],
        activity_level: int | None = None,
    ) -> ParticipantPreference:
        return self.preference_store.record_answers(
            group_id, session_id, answers, activity_level=activity_level,
        )

    def recommend(self, group_id: str) -> list[RecommendationRecord]:
        group = self.group_store.get(group_id)
        preferences = self.preference_store.list_for_group(group_id)

        stats = compute_group_stats(preferences)
        signals = aggregate_mood_signals(preferences)
        summary = build_preference_summary(group, stats, signals)
        venues = self._filtered_venues(group, preferences)

        result = generate_recommendations(
            summary, stats, signals, venues, config=self.llm_config,
        )
        logger.info(
            "Group %s: %d recommendations from %s (%s)",
            group_id, len(result.recommendations), result.source,
            ", ".join(result.debug_notes),
        )

        model_version = (
            self.llm_config.model if result.source == "llm" else FALLBACK_MODEL_VERSION
        )
        return save_recommendations(
            self.recommendation_store,
            self.venue_store,
            group_id,
            result.recommendations,
            model_version=model_version,
        )

    # -- helpers -----------------------------------------------------------

    def _filtered_venues(
        self,
        group: EventGroup,
        preferences: list[ParticipantPreference],
    ) -> list[FilteredVenue]:
        # Profile lookup and candidate fetch are independent reads.
        with ThreadPoolExecutor(max_workers=2) as pool:
            profile_future = pool.submit(self.preference_store.get_profile, group.creator_id)
            venues_future = pool.submit(self.venue_store.find, city=group.city)
            profile = profile_future.result()
            candidates = venues_future.result()

        return self.venue_filter.rank(preferences, candidates, user_preference=profile)
