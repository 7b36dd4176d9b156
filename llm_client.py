"""
Cached OpenAI-compatible client factory (Gemini via its OpenAI endpoint).
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
LLM_BASE_URL = os.getenv("LLM_BASE_URL", DEFAULT_BASE_URL)
LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.0-flash")


@lru_cache(maxsize=8)
def _cached_client(api_key: str, base_url: str) -> OpenAI:
    return OpenAI(api_key=api_key, base_url=base_url)


def get_llm_client(api_key: Optional[str] = None, base_url: Optional[str] = None) -> OpenAI:
    """
    Return a cached client for a key/base URL pair.
    Falls back to GEMINI_API_KEY and LLM_BASE_URL from the environment.
    """
    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key or api_key == "replace_me":
        raise RuntimeError("GEMINI_API_KEY not configured")
    return _cached_client(api_key, base_url or LLM_BASE_URL)
