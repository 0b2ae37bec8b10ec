from __future__ import annotations

import threading
from typing import Any, Mapping, Sequence

from ..errors import NotFoundError
from ..questions.models import MoodQuestion
from ..venues.models import UserPreferenceProfile
from .models import EventGroup, ParticipantPreference


class GroupStore:
    """In-memory event groups keyed by id."""

    def __init__(self) -> None:
        self._groups: dict[str, EventGroup] = {}
        self._lock = threading.Lock()

    def create(self, group: EventGroup | Mapping[str, Any]) -> EventGroup:
        group = EventGroup.model_validate(group).model_copy(deep=True)
        with self._lock:
            self._groups[group.id] = group
        return group.model_copy(deep=True)

    def get(self, group_id: str) -> EventGroup:
        with self._lock:
            group = self._groups.get(group_id)
        if group is None:
            raise NotFoundError("group", group_id)
        return group.model_copy(deep=True)


class PreferenceStore:
    """
    Participant preferences keyed by (group_id, session_id) plus the
    long-lived user profiles filled in during onboarding.

    Every read hands out a deep copy so callers work on a snapshot.
    """

    def __init__(self) -> None:
        self._preferences: dict[tuple[str, str], ParticipantPreference] = {}
        self._profiles: dict[str, UserPreferenceProfile] = {}
        self._lock = threading.Lock()

    def upsert(
        self, preference: ParticipantPreference | Mapping[str, Any],
    ) -> ParticipantPreference:
        preference = ParticipantPreference.model_validate(preference).model_copy(deep=True)
        key = (preference.group_id, preference.session_id)
        with self._lock:
            existing = self._preferences.get(key)
            if existing is not None and not preference.mood_responses:
                # Re-joining must not wipe answers given earlier in the event.
                preference.mood_responses = existing.mood_responses
                preference.last_questions = existing.last_questions
            self._preferences[key] = preference
        return preference.model_copy(deep=True)

    def get(self, group_id: str, session_id: str) -> ParticipantPreference:
        with self._lock:
            preference = self._preferences.get((group_id, session_id))
        if preference is None:
            raise NotFoundError("preference", f"{group_id}/{session_id}")
        return preference.model_copy(deep=True)

    def list_for_group(self, group_id: str) -> list[ParticipantPreference]:
        with self._lock:
            return [
                p.model_copy(deep=True)
                for (gid, _), p in self._preferences.items()
                if gid == group_id
            ]

    def record_answers(
        self,
        group_id: str,
        session_id: str,
        answers: Mapping[str, Any],
        activity_level: int | None = None,
    ) -> ParticipantPreference:
        with self._lock:
            current = self._preferences.get((group_id, session_id))
            if current is None:
                raise NotFoundError("preference", f"{group_id}/{session_id}")
            update: dict[str, Any] = {
                "mood_responses": current.mood_responses.with_answers(answers),
            }
            if activity_level is not None:
                update["activity_level"] = max(1, min(5, int(activity_level)))
            updated = ParticipantPreference.model_validate(
                {**current.model_dump(), **update}
            )
            self._preferences[(group_id, session_id)] = updated
        return updated.model_copy(deep=True)

    def record_questions(
        self,
        group_id: str,
        session_id: str,
        questions: Sequence[MoodQuestion],
    ) -> None:
        with self._lock:
            current = self._preferences.get((group_id, session_id))
            if current is None:
                raise NotFoundError("preference", f"{group_id}/{session_id}")
            self._preferences[(group_id, session_id)] = current.model_copy(
                update={"last_questions": [q.model_copy() for q in questions]},
            )

    def save_profile(
        self, profile: UserPreferenceProfile | Mapping[str, Any],
    ) -> UserPreferenceProfile:
        profile = UserPreferenceProfile.model_validate(profile).model_copy(deep=True)
        with self._lock:
            self._profiles[profile.user_id] = profile
        return profile.model_copy(deep=True)

    def get_profile(self, user_id: str | None) -> UserPreferenceProfile | None:
        """Profile for *user_id*; ``None`` when the user never filled one in."""
        if not user_id:
            return None
        with self._lock:
            profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None
