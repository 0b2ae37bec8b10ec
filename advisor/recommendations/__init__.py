"""
Recommendation engine.

Responsibilities:
- Blend group stats, live mood signals and filtered venues into 3-5 picks.
- Ask the LLM for personalised picks, reasoning and highlights.
- Fall back to a deterministic, templated ranking when the LLM fails.
- Persist accepted picks as append-only records per group.
"""
