from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "openai/gpt-oss-20b")
    timeout: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "10"))
    max_tokens: int = 1024
    enabled: bool = True
    strict_schema: bool = True


DEFAULT_LLM_CONFIG = LLMConfig()
