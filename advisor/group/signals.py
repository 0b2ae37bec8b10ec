from __future__ import annotations

import json
import logging
import math
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SignalValue = Union[str, bool, int, float]


class SignalKey(str, Enum):
    # Theme catalog keys
    time_availability = "timeAvailability"
    budget_sensitivity = "budgetSensitivity"
    hunger_level = "hungerLevel"
    weather_dependency = "weatherDependency"
    energy_level = "energyLevel"
    adventure_level = "adventureLevel"
    experience_intensity = "experienceIntensity"
    social_dynamics = "socialDynamics"
    activity_focus = "activityFocus"
    setting_preference = "settingPreference"
    # Fallback question keys
    current_energy = "currentEnergy"
    time_available = "timeAvailable"
    indoor_outdoor_preference = "indoorOutdoorPreference"
    activity_pace = "activityPace"


_KNOWN_KEYS = {k.value: k for k in SignalKey}


def _coerce_value(value: Any) -> SignalValue | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


class MoodSignals(BaseModel):
    """
    Live answers keyed by signal key.

    Known keys land in ``known``; anything else is kept verbatim in
    ``unknown`` so that newer clients do not lose data. Only scalar values
    survive validation.
    """

    known: dict[SignalKey, SignalValue] = Field(default_factory=dict)
    unknown: dict[str, SignalValue] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> MoodSignals:
        """Build signals from stored JSON text or a mapping; malformed input yields empty signals."""
        if isinstance(raw, MoodSignals):
            return raw.model_copy(deep=True)
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Discarding malformed mood responses payload")
                return cls()
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning("Discarding mood responses of type %s", type(raw).__name__)
            return cls()
        if raw and set(raw) <= {"known", "unknown"} and all(
            isinstance(v, Mapping) for v in raw.values()
        ):
            # Already in serialized MoodSignals form
            return cls().with_answers({**raw.get("unknown", {}), **raw.get("known", {})})
        return cls().with_answers(raw)

    def with_answers(self, answers: Mapping[str, Any]) -> MoodSignals:
        """Return a copy with *answers* written over the current values."""
        known = dict(self.known)
        unknown = dict(self.unknown)
        for raw_key, raw_value in answers.items():
            value = _coerce_value(raw_value)
            if value is None:
                continue
            key = raw_key.value if isinstance(raw_key, SignalKey) else str(raw_key)
            if key in _KNOWN_KEYS:
                known[_KNOWN_KEYS[key]] = value
            else:
                unknown[key] = value
        return MoodSignals(known=known, unknown=unknown)

    def merge_first_wins(self, other: MoodSignals) -> MoodSignals:
        """Add keys from *other* that are not answered here yet."""
        known = dict(self.known)
        for key, value in other.known.items():
            known.setdefault(key, value)
        unknown = dict(self.unknown)
        for key, value in other.unknown.items():
            unknown.setdefault(key, value)
        return MoodSignals(known=known, unknown=unknown)

    def get(self, key: SignalKey | str) -> SignalValue | None:
        name = key.value if isinstance(key, SignalKey) else key
        if name in _KNOWN_KEYS:
            return self.known.get(_KNOWN_KEYS[name])
        return self.unknown.get(name)

    def get_text(self, key: SignalKey | str) -> str | None:
        value = self.get(key)
        return None if value is None else str(value)

    def answered_keys(self) -> set[str]:
        return {k.value for k in self.known} | set(self.unknown)

    def as_dict(self) -> dict[str, SignalValue]:
        return {**self.unknown, **{k.value: v for k, v in self.known.items()}}

    def __bool__(self) -> bool:
        return bool(self.known or self.unknown)


def merge_signals(signal_sets: Iterable[MoodSignals]) -> MoodSignals:
    merged = MoodSignals()
    for signals in signal_sets:
        merged = merged.merge_first_wins(signals)
    return merged
