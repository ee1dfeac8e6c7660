"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class STTConfig(BaseSettings):
    api_url: str = "https://api.deepgram.com/v1/listen"
    model: str = "nova-2"
    language: str = "ko"
    smart_format: bool = True
    diarize: bool = True
    timeout_seconds: float = 240.0


class LLMConfig(BaseSettings):
    provider: str = "anthropic"  # anthropic | openai
    extraction_model: str = "claude-sonnet-4-5-20250929"
    fast_model: str = "claude-3-5-haiku-20241022"
    vision_model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 8192
    temperature: float = 0.0


class RetryConfig(BaseSettings):
    max_attempts: int = 3
    base_delay_seconds: float = 2.0


class RAGConfig(BaseSettings):
    enabled: bool = True
    embedding_model: str = "text-embedding-3-small"
    match_threshold: float = 0.4
    match_count: int = 5
    max_documents: int = 5
    critical_terms: list[str] = Field(default_factory=lambda: [
        "근골격계", "중량물", "추락", "전도", "끼임", "감전", "화재", "폭발", "질식",
    ])
    off_topic_terms: list[str] = Field(default_factory=lambda: [
        "밀폐공간", "석면", "방사선", "잠수", "터널", "고압가스", "항공",
    ])


class ExtractionConfig(BaseSettings):
    transcript_max_chars: int = 15000
    min_item_id_length: int = 10


class StorageConfig(BaseSettings):
    base_dir: str = "data/storage"
    bucket: str = "findings"
    public_base_url: str = ""
    max_image_side: int = 2048


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/fieldscribe.db"
    deepgram_api_key: str = ""
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    stt: STTConfig = Field(default_factory=STTConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    rag: RAGConfig = Field(default_factory=RAGConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    stt = STTConfig(**y.get("stt", {}))
    llm = LLMConfig(**y.get("llm", {}))
    retry = RetryConfig(**y.get("retry", {}))
    rag = RAGConfig(**y.get("rag", {}))
    extraction = ExtractionConfig(**y.get("extraction", {}))
    storage = StorageConfig(**y.get("storage", {}))
    db_url = y.get("database", {}).get("url", "sqlite+aiosqlite:///data/fieldscribe.db")
    return Settings(
        database_url=db_url,
        stt=stt,
        llm=llm,
        retry=retry,
        rag=rag,
        extraction=extraction,
        storage=storage,
    )
