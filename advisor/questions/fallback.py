from __future__ import annotations

from typing import AbstractSet, Sequence

from ..group.models import GroupStats, PreferenceSummary
from ..venues.models import Venue
from .models import MoodQuestion
from .venue_analysis import detect_traits

_ENERGY_ANSWERS = {
    "high": ("Pumped", "Hype"),
    "medium": ("Moderate", "Balanced"),
    "low": ("Mellow", "Chill"),
}


def _summary_is_food_focused(summary: PreferenceSummary) -> bool:
    return any(
        needle in keyword.lower()
        for keyword in summary.vibe_keywords
        for needle in ("food", "dinner", "restaurant")
    )


def _energy_question(stats: GroupStats, alternate: bool = False) -> MoodQuestion:
    pick = 1 if alternate else 0
    if alternate:
        prompt, options = "What's your energy level right now?", ["Chill", "Balanced", "Hype"]
    else:
        prompt, options = "What's the vibe?", ["Mellow", "Moderate", "Pumped"]
    return MoodQuestion(
        id="currentEnergy",
        prompt=prompt,
        type="scale",
        signal_key="currentEnergy",
        options=options,
        suggested_response=_ENERGY_ANSWERS[stats.energy_label][pick],
        reason="Need live energy reading to match venue pacing.",
    )


def _atmosphere_question() -> MoodQuestion:
    return MoodQuestion(
        id="atmospherePreference",
        prompt="What's the weather vibe you're feeling?",
        type="choice",
        signal_key="indoorOutdoorPreference",
        options=["Stay inside", "Get some air", "No preference"],
        reason="Helps match indoor vs outdoor venues naturally.",
    )


def _time_question() -> MoodQuestion:
    return MoodQuestion(
        id="timeAvailable",
        prompt="How long are you thinking?",
        type="scale",
        signal_key="timeAvailable",
        options=["Quick", "Moderate", "All evening"],
        reason="Helps filter availability slots.",
    )


def _pace_question() -> MoodQuestion:
    return MoodQuestion(
        id="activityPace",
        prompt="What's your move tonight?",
        type="choice",
        signal_key="activityPace",
        options=["Low-key", "Mix it up", "Go all out"],
        reason="Helps differentiate between active and relaxed venues.",
    )


def _hunger_question(summary: PreferenceSummary) -> MoodQuestion:
    return MoodQuestion(
        id="hungerLevel",
        prompt="Food situation?",
        type="choice",
        signal_key="hungerLevel",
        options=["Light bites", "Full meal", "Already ate"],
        suggested_response="Full meal" if _summary_is_food_focused(summary) else "Light bites",
        reason="Decides if we pair dining with the plan.",
    )


def build_fallback_questions(
    venues: Sequence[Venue] | None,
    summary: PreferenceSummary,
    stats: GroupStats,
    answered: AbstractSet[str] = frozenset(),
    trait_window: int = 10,
) -> list[MoodQuestion]:
    """
    Template questions chosen from venue keywords, used whenever the LLM
    path fails. Deterministic for a given venue list and summary.
    """
    traits = detect_traits(venues or [], window=trait_window)
    questions: list[MoodQuestion] = []

    if traits.has_indoor and traits.has_outdoor:
        questions.append(_atmosphere_question())

    questions.append(_time_question())

    if traits.has_active and traits.has_relaxed and not traits.has_food:
        questions.append(_pace_question())
    elif traits.has_food:
        questions.append(_hunger_question(summary))
    else:
        questions.append(_energy_question(stats))

    questions = [q for q in questions if q.signal_key not in answered]

    if len(questions) < 2 and not any(q.signal_key == "currentEnergy" for q in questions):
        if "currentEnergy" not in answered:
            questions.append(_energy_question(stats, alternate=True))
        elif not questions:
            spare = [
                q for q in (_pace_question(), _atmosphere_question(), _hunger_question(summary))
                if q.signal_key not in answered
            ]
            # Energy is re-checked only once every template has an answer.
            questions.append(spare[0] if spare else _energy_question(stats, alternate=True))

    return questions[:3]
