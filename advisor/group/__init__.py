"""
Group context layer.

Responsibilities:
- Model event groups, participant preferences and typed mood signals.
- Persist preferences and onboarding profiles behind a lock-protected store.
- Derive group statistics and a deterministic preference summary.
"""
