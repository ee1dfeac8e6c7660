"""Abstract LLM and embedding providers with Anthropic and OpenAI adapters.

SDK-level retries are disabled; retry behavior belongs to RetryPolicy so it
is the same across every stage.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod

from fieldscribe.config import Settings


class LLMProvider(ABC):
    """Abstract interface for text and vision LLM calls."""

    @abstractmethod
    async def chat(
        self,
        prompt: str,
        *,
        system: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float | None = None,
    ) -> str:
        """Text-only completion."""
        ...

    @abstractmethod
    async def analyze_image(
        self,
        image: bytes,
        media_type: str,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float | None = None,
    ) -> str:
        """Send one image + prompt, return the text response."""
        ...


class EmbeddingProvider(ABC):
    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        ...


def _encode(data: bytes) -> str:
    return base64.standard_b64encode(data).decode("utf-8")


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929"):
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key, max_retries=0)
        self.model = model

    async def chat(self, prompt, *, system=None, model=None, max_tokens=1024, temperature=None) -> str:
        kwargs = {}
        if system:
            kwargs["system"] = system
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = await self.client.messages.create(
            model=model or self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": [{"type": "text", "text": prompt}]}],
            **kwargs,
        )
        return "".join(block.text for block in resp.content if getattr(block, "type", "") == "text")

    async def analyze_image(self, image, media_type, prompt, *, model=None, max_tokens=4096, temperature=None) -> str:
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = await self.client.messages.create(
            model=model or self.model,
            max_tokens=max_tokens,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": media_type, "data": _encode(image)}},
                    {"type": "text", "text": prompt},
                ],
            }],
            **kwargs,
        )
        return "".join(block.text for block in resp.content if getattr(block, "type", "") == "text")


class OpenAIProvider(LLMProvider):
    """OpenAI GPT-4o provider."""

    def __init__(self, api_key: str, model: str = "gpt-4o"):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self.model = model

    async def chat(self, prompt, *, system=None, model=None, max_tokens=1024, temperature=None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = await self.client.chat.completions.create(
            model=model or self.model,
            messages=messages,
            max_tokens=max_tokens,
            **kwargs,
        )
        return resp.choices[0].message.content or ""

    async def analyze_image(self, image, media_type, prompt, *, model=None, max_tokens=4096, temperature=None) -> str:
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = await self.client.chat.completions.create(
            model=model or self.model,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{_encode(image)}"}},
                ],
            }],
            max_tokens=max_tokens,
            **kwargs,
        )
        return resp.choices[0].message.content or ""


class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(self, api_key: str, model: str = "text-embedding-3-small"):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self.model = model

    async def embed(self, text: str) -> list[float]:
        resp = await self.client.embeddings.create(model=self.model, input=text)
        return list(resp.data[0].embedding)


def get_llm_provider(settings: Settings) -> LLMProvider:
    """Factory: the provider named in llm.provider, which must have its key set.

    Model names in the llm section are provider-specific, so there is no
    silent fallback to the other vendor.
    """
    llm = settings.llm
    if llm.provider == "anthropic" and settings.anthropic_api_key:
        return AnthropicProvider(settings.anthropic_api_key, llm.extraction_model)
    if llm.provider == "openai" and settings.openai_api_key:
        return OpenAIProvider(settings.openai_api_key, llm.extraction_model)
    raise RuntimeError(
        f"No API key configured for LLM provider '{llm.provider}'. "
        "Set ANTHROPIC_API_KEY or OPENAI_API_KEY to match llm.provider."
    )


def get_embedding_provider(settings: Settings) -> EmbeddingProvider | None:
    """Embeddings need an OpenAI key; without one retrieval is skipped."""
    if not settings.openai_api_key:
        return None
    return OpenAIEmbeddingProvider(settings.openai_api_key, settings.rag.embedding_model)
