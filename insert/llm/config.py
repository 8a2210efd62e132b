from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    """Settings for the optional Groq ranking signal."""

    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    timeout: float = float(os.getenv("GROQ_TIMEOUT", "10"))
    max_tokens: int = 512
    enabled: bool = os.getenv("LLM_RANKING_ENABLED", "true").lower() != "false"
    max_candidates: int = 40  # places offered to the model per request


DEFAULT_LLM_CONFIG = LLMConfig()
