from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QuestionConfig:
    cache_ttl_seconds: float = 600.0
    sweep_interval_seconds: float = 300.0
    venue_sample_size: int = 12
    trait_window: int = 10
    max_questions: int = 3
    context_bonus: float = 3.0
    time_bonus: float = 2.0
    # Large on purpose: repeated polls should see different themes.
    jitter: float = 10.0


DEFAULT_QUESTION_CONFIG = QuestionConfig()
