from __future__ import annotations

from .models import EventGroup, GroupStats, PreferenceSummary
from .signals import MoodSignals, SignalKey

_DEFAULT_LOCATION = "Espoo · Tapiola radius"
_DEFAULT_TIME_WINDOW = "Weekend afternoon & evening blocks (16:00-23:00)"

_VIBE_BY_ENERGY = {
    "high": "competitive-high energy hang",
    "medium": "balanced social adventure",
    "low": "cozy, conversation-first flow",
}

_TIME_SIGNALS = {
    "<1h": "Under an hour • sprint session",
    "1-2h": "About 1-2 hours • relaxed pace",
    "2h+": "2 hours or more • open evening",
}


def describe_time_window(target_time: str | None, time_signal: str | None) -> str:
    if time_signal:
        return _TIME_SIGNALS.get(time_signal, f"Group-mentioned time: {time_signal}")
    if target_time:
        return f"Target time {target_time}"
    return _DEFAULT_TIME_WINDOW


def describe_hunger_level(hunger_signal: str | None) -> str:
    if not hunger_signal:
        return "Medium hunger - open to bites or a full meal"

    normalized = hunger_signal.lower()
    if "snack" in normalized:
        return "Snacky - tasting portions"
    if any(word in normalized for word in ("proper", "meal", "hungry")):
        return "Ready for a proper meal"
    if "stuffed" in normalized or "full" in normalized:
        return "Already full - focus on activities"
    return hunger_signal


def resolve_energy(energy_signal: str | None, fallback: str) -> str:
    """Map a live energy answer onto low/medium/high, else *fallback*."""
    if not energy_signal:
        return fallback
    normalized = energy_signal.lower()
    if any(word in normalized for word in ("chill", "low", "mellow")):
        return "low"
    if any(word in normalized for word in ("balanced", "medium", "normal", "moderate")):
        return "medium"
    if any(word in normalized for word in ("hype", "high", "pumped")):
        return "high"
    return fallback


def derive_vibe_hint(energy_label: str, energy_signal: str | None) -> str:
    return _VIBE_BY_ENERGY[resolve_energy(energy_signal, energy_label)]


def build_preference_summary(
    group: EventGroup,
    stats: GroupStats,
    signals: MoodSignals,
) -> PreferenceSummary:
    """Deterministic group summary fed to the question and recommendation steps."""
    base_location = group.preferred_location or group.city or _DEFAULT_LOCATION
    time_window = describe_time_window(
        group.target_time, signals.get_text(SignalKey.time_available),
    )
    vibe_hint = derive_vibe_hint(
        stats.energy_label, signals.get_text(SignalKey.current_energy),
    )
    hunger_level = describe_hunger_level(signals.get_text(SignalKey.hunger_level))

    return PreferenceSummary(
        headline=f"{stats.participant_count or 3}-person {vibe_hint}",
        summary=(
            f"Crew leans {stats.energy_label} energy with "
            f"{stats.popular_money_preference} spend comfort. "
            f"Staying close to {base_location} for {time_window}."
        ),
        vibe_keywords=[
            base_location,
            stats.popular_money_preference,
            stats.energy_label,
            vibe_hint,
        ],
        budget_tier=stats.popular_money_preference,
        energy_level=stats.energy_label,
        time_window=time_window,
        hunger_level=hunger_level,
        call_to_action="Lock in one plan and share the booking link to confirm + split.",
    )
