"""FastAPI dependency providers for settings, DB sessions and external backends.

Each backend is its own dependency so tests can swap it through
app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException

from fieldscribe.agents.llm_provider import (
    LLMProvider, EmbeddingProvider, get_llm_provider, get_embedding_provider,
)
from fieldscribe.config import Settings, get_settings
from fieldscribe.db.engine import async_session_factory
from fieldscribe.services.retry import RetryPolicy
from fieldscribe.services.stt import SpeechToText, DeepgramTranscriber


@lru_cache
def get_settings_dep() -> Settings:
    return get_settings()


def get_session_factory():
    """Factory for sessions opened by background tasks (outliving the request)."""
    return async_session_factory


def get_stt(settings: Settings = Depends(get_settings_dep)) -> SpeechToText:
    if not settings.deepgram_api_key:
        raise HTTPException(503, "DEEPGRAM_API_KEY is not configured")
    return DeepgramTranscriber(settings.deepgram_api_key, settings.stt)


def get_llm(settings: Settings = Depends(get_settings_dep)) -> LLMProvider:
    try:
        return get_llm_provider(settings)
    except RuntimeError as e:
        raise HTTPException(503, str(e))


def get_embedder(settings: Settings = Depends(get_settings_dep)) -> EmbeddingProvider | None:
    return get_embedding_provider(settings)


def get_retry(settings: Settings = Depends(get_settings_dep)) -> RetryPolicy:
    return RetryPolicy.from_config(settings.retry)
