"""
Adaptive mood-question selection.

Responsibilities:
- Keep the fixed catalog of question themes.
- Read the remaining venue pool for differentiating signals.
- Pick 1-3 diverse, unanswered themes and phrase them through the LLM.
- Fall back to venue-aware template questions, cache-backed either way.
"""
