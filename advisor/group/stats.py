from __future__ import annotations

from datetime import datetime
from typing import Sequence

from .models import MONEY_TIERS, GroupStats, ParticipantPreference
from .signals import MoodSignals, merge_signals

_DEFAULT_ACTIVITY_LEVEL = 3.0


def derive_energy_label(avg_activity_level: float) -> str:
    if avg_activity_level >= 4:
        return "high"
    if avg_activity_level >= 2.75:
        return "medium"
    return "low"


def compute_group_stats(preferences: Sequence[ParticipantPreference]) -> GroupStats:
    participant_count = len(preferences)
    avg_activity_level = (
        sum(p.activity_level for p in preferences) / participant_count
        if participant_count > 0
        else _DEFAULT_ACTIVITY_LEVEL
    )

    counts = {tier: 0 for tier in MONEY_TIERS}
    for pref in preferences:
        counts[pref.money_preference] += 1

    # max() keeps the first tier on ties, so cheaper tiers win
    popular = max(MONEY_TIERS, key=lambda tier: counts[tier])
    if counts[popular] == 0:
        popular = "moderate"

    return GroupStats(
        participant_count=participant_count,
        avg_activity_level=avg_activity_level,
        popular_money_preference=popular,
        money_preference_counts=counts,
        energy_label=derive_energy_label(avg_activity_level),
    )


def aggregate_mood_signals(preferences: Sequence[ParticipantPreference]) -> MoodSignals:
    """First participant to answer a signal key wins."""
    return merge_signals(p.mood_responses for p in preferences)


def derive_time_of_day_label(now: datetime | None = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 11:
        return "morning"
    if hour < 16:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "late-night"
