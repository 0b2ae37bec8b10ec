from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)


def _build_response_format(
    name: str,
    schema: dict[str, Any],
    config: LLMConfig,
) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "schema": schema,
            "strict": config.strict_schema,
        },
    }


def request_structured(
    system_prompt: str,
    payload: dict[str, Any],
    *,
    schema_name: str,
    schema: dict[str, Any],
    temperature: float = 0.3,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, Any] | None:
    """
    Send one structured-output request to Groq.

    The user message is the JSON-encoded *payload*; the reply must match
    *schema* (already sanitized). Returns the decoded JSON object, or
    ``None`` on any failure (disabled, timeout, API error, empty content,
    bad JSON, non-object payload).
    """
    if not config.enabled or not config.api_key:
        return None

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": json.dumps(payload, default=str)},
            ],
            max_tokens=config.max_tokens,
            temperature=temperature,
            response_format=_build_response_format(schema_name, schema, config),
        )

        content = response.choices[0].message.content or ""
        if not content.strip():
            logger.warning("Groq returned empty content for %s", schema_name)
            return None

        parsed = json.loads(content)
        if not isinstance(parsed, dict):
            logger.warning("Groq returned a non-object payload for %s", schema_name)
            return None
        return parsed

    except Exception:
        logger.warning(
            "Groq structured call %s failed, falling back to heuristics",
            schema_name,
            exc_info=True,
        )
        return None
