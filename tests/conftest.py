"""Shared fixtures: in-memory database, settings and fake backends."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fieldscribe.agents.llm_provider import LLMProvider, EmbeddingProvider
from fieldscribe.config import Settings
from fieldscribe.models import Base
from fieldscribe.services.retry import RetryPolicy, linear_backoff
from fieldscribe.services.stt import SpeechToText


class OverloadedError(Exception):
    """Stand-in for an SDK error carrying an HTTP status."""

    def __init__(self, status_code: int = 529):
        super().__init__(f"HTTP {status_code} overloaded")
        self.status_code = status_code


class FakeLLM(LLMProvider):
    """Scripted LLM. Keyword-translation calls (fast model) get `keywords`;
    every other chat call consumes the next item of `responses`, raising it
    if it is an exception."""

    def __init__(self, settings: Settings, responses=(), keywords='["감전", "화재"]', image_responses=()):
        self.fast_model = settings.llm.fast_model
        self.responses = list(responses)
        self.keywords = keywords
        self.image_responses = list(image_responses)
        self.chat_calls: list[dict] = []
        self.image_calls: list[dict] = []

    @property
    def extraction_calls(self) -> list[dict]:
        return [c for c in self.chat_calls if c["model"] != self.fast_model]

    async def chat(self, prompt, *, system=None, model=None, max_tokens=1024, temperature=None):
        self.chat_calls.append({
            "prompt": prompt, "system": system, "model": model, "temperature": temperature,
        })
        if model == self.fast_model:
            if isinstance(self.keywords, Exception):
                raise self.keywords
            return self.keywords
        item = self.responses.pop(0) if self.responses else '{"title": null, "sets": []}'
        if isinstance(item, Exception):
            raise item
        return item

    async def analyze_image(self, image, media_type, prompt, *, model=None, max_tokens=4096, temperature=None):
        self.image_calls.append({"media_type": media_type, "model": model, "size": len(image)})
        item = self.image_responses.pop(0) if self.image_responses else '{"columns": []}'
        if isinstance(item, Exception):
            raise item
        return item


class FakeEmbedder(EmbeddingProvider):
    def __init__(self, vector=None, error: Exception | None = None):
        self.vector = vector or [1.0, 0.0, 0.0]
        self.error = error
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.vector)


class FakeSTT(SpeechToText):
    def __init__(self, transcript: str | None = "", error: Exception | None = None):
        self.transcript = transcript
        self.error = error
        self.refs: list[str] = []
        self.content_types: list[str | None] = []

    async def transcribe_bytes(self, data, filename, content_type=None):
        self.content_types.append(content_type)
        return await self.transcribe_url(filename)

    async def transcribe_url(self, url):
        self.refs.append(url)
        if self.error:
            raise self.error
        return self.transcript or None


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        deepgram_api_key="test-deepgram",
        anthropic_api_key="test-anthropic",
        openai_api_key="",
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retry(sleeps):
    """Production schedule (3 attempts, linear backoff) with sleeps recorded instead of awaited."""
    async def _sleep(delay):
        sleeps.append(delay)

    return RetryPolicy(max_attempts=3, backoff=linear_backoff(2.0), sleep=_sleep)


@pytest.fixture
def make_llm(settings):
    def _make(responses=(), keywords='["감전", "화재"]', image_responses=()):
        return FakeLLM(settings, responses, keywords, image_responses)
    return _make


@pytest.fixture
def overloaded():
    return OverloadedError


@pytest.fixture
def make_embedder():
    return FakeEmbedder


@pytest.fixture
def make_stt():
    return FakeSTT
