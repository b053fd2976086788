"""Application configuration loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_temperature: float = Field(default=0.7)
    recommendation_count: int = Field(default=5, ge=1, le=20)
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3")
    tmdb_language: str = Field(default="en-US")
    tmdb_watch_region: str = Field(default="US")
    tmdb_image_base: str = Field(default="https://image.tmdb.org/t/p/w500")
    tmdb_timeout_seconds: float = Field(default=10.0, gt=0)
    enrichment_batch_size: int = Field(default=3, ge=1)
    enrichment_batch_pause_seconds: float = Field(default=0.1, ge=0)
    fallback_keyword_limit: int = Field(default=3, ge=1)
    fallback_results_per_keyword: int = Field(default=3, ge=1)
    fallback_max_candidates: int = Field(default=10, ge=1)
    langchain_tracing_v2: bool = Field(default=False, alias="LANGCHAIN_TRACING_V2")
    langchain_api_key: str | None = Field(default=None, alias="LANGCHAIN_API_KEY")
    langchain_project: str | None = Field(default=None, alias="LANGCHAIN_PROJECT")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
