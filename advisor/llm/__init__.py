"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Rewrite pydantic response schemas into the strict structured-output dialect.
- Issue one structured-output call per request and hand back parsed JSON.
- Signal failure with ``None`` so callers can fall back to heuristics.
"""
