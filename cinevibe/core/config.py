"""Application configuration loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:3000",
    "http://localhost:5000",
    "http://127.0.0.1:5500",
]


class Settings(BaseSettings):
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_timeout: float = Field(default=20.0, alias="OPENAI_TIMEOUT")
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_v4_token: str | None = Field(default=None, alias="TMDB_V4_TOKEN")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3")
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    tmdb_region: str = Field(default="US", alias="TMDB_REGION")
    tmdb_image_base: str = Field(default="https://image.tmdb.org/t/p")
    tmdb_timeout: float = Field(default=15.0, alias="TMDB_TIMEOUT")
    port: int = Field(default=5000, alias="PORT")
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS), alias="CORS_ORIGINS")
    force_ipv4: bool = Field(default=False, alias="FORCE_IPV4")
    database_url: str = Field(default="sqlite:///./cinevibe.db", alias="DATABASE_URL")
    trending_ttl_seconds: float = Field(default=60 * 60, alias="TRENDING_TTL_SECONDS")
    enrich_concurrency: int | None = Field(default=None, alias="ENRICH_CONCURRENCY")
    http_retry_attempts: int = Field(default=4, alias="HTTP_RETRY_ATTEMPTS")
    http_retry_base_delay: float = Field(default=0.3, alias="HTTP_RETRY_BASE_DELAY")
    warm_trending_on_startup: bool = Field(default=True, alias="WARM_TRENDING_ON_STARTUP")
    langchain_tracing_v2: bool = Field(default=False, alias="LANGCHAIN_TRACING_V2")
    langchain_api_key: str | None = Field(default=None, alias="LANGCHAIN_API_KEY")
    langchain_project: str | None = Field(default=None, alias="LANGCHAIN_PROJECT")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
