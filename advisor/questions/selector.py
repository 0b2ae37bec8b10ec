from __future__ import annotations

import logging
import random
import threading
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Literal, Sequence

from pydantic import BaseModel, Field, ValidationError

from ..cache import TTLCache, make_cache_key
from ..group.models import GroupStats, PreferenceSummary
from ..group.signals import MoodSignals
from ..group.stats import derive_time_of_day_label
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import request_structured
from ..llm.schema import response_schema
from ..venues.models import Venue
from .config import DEFAULT_QUESTION_CONFIG, QuestionConfig
from .fallback import build_fallback_questions
from .models import MoodCheckResult, MoodQuestion, QuestionTheme
from .themes import QUESTION_THEMES
from .venue_analysis import (
    FACTOR_SOCIAL,
    VenueAnalysis,
    analyze_venues,
)

logger = logging.getLogger(__name__)

MOOD_SYSTEM_PROMPT = (
    "Select 1-3 question themes that best match the venue context. "
    "Mix preference themes with factual/constraint themes. "
    "Use the theme prompts as a guide but adapt naturally. "
    "IMPORTANT: Each question must have exactly 3 options. "
    "For scale questions, provide exactly 3 option strings. "
    "For choice questions, provide exactly 3 distinct choices. "
    "Use an empty string for suggested_response, reason or follow_up "
    "when you have nothing to add."
)


# ---------------------------------------------------------------------------
# LLM response contract
# ---------------------------------------------------------------------------


class _QuestionPayload(BaseModel):
    id: str
    prompt: str
    type: Literal["scale", "choice"]
    signal_key: str
    options: list[str]
    suggested_response: str
    reason: str


class _MoodAgentPayload(BaseModel):
    questions: list[_QuestionPayload] = Field(..., min_length=1, max_length=3)
    follow_up: str


MOOD_RESPONSE_SCHEMA = response_schema(_MoodAgentPayload)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass
class MoodCheckRequest:
    stats: GroupStats
    summary: PreferenceSummary
    answered_signals: MoodSignals = field(default_factory=MoodSignals)
    time_of_day: str | None = None
    venues: Sequence[Venue] | None = None
    participant_name: str | None = None


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------


class QuestionSelector:
    """
    Picks up to three mood questions for the current venue pool.

    Results (LLM-phrased or fallback) are cached per venue set, answered
    keys and time bucket, so polling clients skip the LLM inside the TTL.
    Randomness comes from the injected ``rng``; seed it to replay a pick.
    """

    def __init__(
        self,
        cache: TTLCache[MoodCheckResult],
        *,
        rng: random.Random | None = None,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        config: QuestionConfig = DEFAULT_QUESTION_CONFIG,
        themes: Sequence[QuestionTheme] = QUESTION_THEMES,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.cache = cache
        self.rng = rng or random.Random()
        self.llm_config = llm_config
        self.config = config
        self.themes = tuple(themes)
        self._now = now
        self._key_locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._key_locks_guard = threading.Lock()

    # -- public ------------------------------------------------------------

    def cache_key(self, request: MoodCheckRequest, time_bucket: str) -> str:
        venue_ids = sorted(v.id for v in request.venues) if request.venues else "no-venues"
        answered = sorted(request.answered_signals.answered_keys()) or "none"
        return make_cache_key({
            "venues": venue_ids,
            "answered": answered,
            "time": time_bucket,
        })

    def select(self, request: MoodCheckRequest) -> MoodCheckResult:
        time_bucket = request.time_of_day or derive_time_of_day_label(self._now())
        key = self.cache_key(request, time_bucket)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Mood question cache hit %s", key)
            return cached.model_copy(deep=True)

        lock = self._lock_for(key)
        with lock:
            # Another request may have filled the entry while we waited.
            cached = self.cache.get(key)
            if cached is not None:
                return cached.model_copy(deep=True)

            result = self._compute(request, time_bucket)
            self.cache.set(key, result, ttl=self.config.cache_ttl_seconds)
            return result.model_copy(deep=True)

    def select_themes(
        self,
        answered: set[str],
        time_of_day: str | None,
        analysis: VenueAnalysis | None,
    ) -> list[QuestionTheme]:
        available = [t for t in self.themes if t.signal_key not in answered]
        if not available:
            return []

        ranked = self._rank_themes(available, time_of_day, analysis)
        selected = self._pick_diverse(ranked)
        self.rng.shuffle(selected)
        return selected[: self.config.max_questions]

    # -- theme ranking -----------------------------------------------------

    def _rank_themes(
        self,
        themes: list[QuestionTheme],
        time_of_day: str | None,
        analysis: VenueAnalysis | None,
    ) -> list[QuestionTheme]:
        has_setting = analysis is not None and (
            analysis.mentions("indoor") or analysis.mentions("outdoor")
        )
        has_food = analysis is not None and analysis.has_food
        has_activity = analysis is not None and analysis.mentions("activity")
        has_social = analysis is not None and FACTOR_SOCIAL in analysis.differentiating_factors

        scored: list[tuple[float, QuestionTheme]] = []
        for theme in themes:
            score = 0.0
            if has_setting and theme.id == "setting-preference":
                score += self.config.context_bonus
            if has_food and theme.id == "hunger-level":
                score += self.config.context_bonus
            if has_activity and theme.id == "activity-vs-dining":
                score += self.config.context_bonus
            if has_social and theme.id == "social-vibe":
                score += self.config.context_bonus
            if time_of_day and theme.id == "time-availability":
                score += self.config.time_bonus
            score += self.rng.random() * self.config.jitter
            scored.append((score, theme))

        # Shuffle before the stable sort so equal scores break randomly.
        self.rng.shuffle(scored)
        scored.sort(key=lambda item: item[0], reverse=True)
        return [theme for _, theme in scored]

    def _pick_diverse(self, ranked: list[QuestionTheme]) -> list[QuestionTheme]:
        """One theme per category in rank order, then the best of the rest."""
        limit = self.config.max_questions
        selected: list[QuestionTheme] = []

        for theme in ranked:
            if len(selected) >= limit:
                break
            # First pick is free, later picks need a category not used yet.
            if theme.category not in {t.category for t in selected}:
                selected.append(theme)

        # Not enough distinct categories left: fill from the ranking.
        for theme in ranked:
            if len(selected) >= limit:
                break
            if theme not in selected:
                selected.append(theme)

        return selected

    # -- computation -------------------------------------------------------

    def _compute(self, request: MoodCheckRequest, time_bucket: str) -> MoodCheckResult:
        answered = request.answered_signals.answered_keys()
        analysis = analyze_venues(
            request.venues or [], self.rng, sample_size=self.config.venue_sample_size,
        )
        themes = self.select_themes(answered, request.time_of_day, analysis)

        if not themes:
            logger.info("Every question theme is answered, using fallback questions")
            return self._fallback(request, answered, "all-themes-answered")

        payload = {
            "timeOfDay": time_bucket,
            "participantName": request.participant_name,
            "answeredSignals": request.answered_signals.as_dict(),
            "venueContext": (
                {"differentiatingFactors": analysis.differentiating_factors[:2]}
                if analysis
                else None
            ),
            "questionThemes": [
                theme.model_dump(include={"id", "category", "prompt", "signal_key", "description"})
                for theme in themes
            ],
        }

        raw = request_structured(
            MOOD_SYSTEM_PROMPT,
            payload,
            schema_name="mood_agent_output",
            schema=MOOD_RESPONSE_SCHEMA,
            temperature=0.3,
            config=self.llm_config,
        )
        if raw is None:
            return self._fallback(request, answered, "mood-agent-fallback")

        try:
            parsed = _MoodAgentPayload.model_validate(raw)
        except ValidationError:
            logger.warning("Mood agent returned an invalid payload, using fallback", exc_info=True)
            return self._fallback(request, answered, "mood-agent-fallback")

        questions = [
            MoodQuestion(
                id=q.id,
                prompt=q.prompt,
                type=q.type,
                signal_key=q.signal_key,
                options=q.options,
                suggested_response=q.suggested_response.strip() or None,
                reason=q.reason.strip() or None,
            )
            for q in parsed.questions
            if q.signal_key not in answered
        ]
        if not questions:
            logger.warning("Mood agent only asked answered signals, using fallback")
            return self._fallback(request, answered, "mood-agent-fallback")

        return MoodCheckResult(
            questions=questions[: self.config.max_questions],
            follow_up=parsed.follow_up.strip() or None,
            debug_notes=["llm", f"themes:{','.join(t.id for t in themes)}"],
        )

    def _fallback(
        self,
        request: MoodCheckRequest,
        answered: set[str],
        note: str,
    ) -> MoodCheckResult:
        return MoodCheckResult(
            questions=build_fallback_questions(
                request.venues,
                request.summary,
                request.stats,
                answered=answered,
                trait_window=self.config.trait_window,
            ),
            follow_up=None,
            debug_notes=[note],
        )

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock
