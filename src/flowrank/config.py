"""Configuration helpers shared across services."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings."""

    redis_url: str = Field("redis://localhost:6379/0", alias="REDIS_URL")
    mcp_host: str = Field("0.0.0.0", alias="MCP_HOST")
    mcp_port: int = Field(3000, alias="MCP_PORT")
    mcp_api_token: str | None = Field(default=None, alias="MCP_API_TOKEN")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO")

    corpus_backend: Literal["redis", "http"] = Field("redis", alias="CORPUS_BACKEND")
    corpus_sources: list[str] = Field(
        default_factory=lambda: ["github", "n8n.io", "ai-enhanced"],
        alias="CORPUS_SOURCES",
    )
    corpus_version: str = Field("v1.5.0", alias="CORPUS_VERSION")
    corpus_stub_url: str = Field("http://flowrank-corpus-stub:8080", alias="CORPUS_STUB_URL")
    corpus_path: str = Field("/corpus", alias="CORPUS_PATH")
    corpus_http_timeout: float = Field(30.0)
    corpus_ttl_hours: int = Field(0)

    default_top_k: int = Field(6)
    max_top_k: int = Field(50)
    min_pool_size: int = Field(50, alias="MIN_POOL_SIZE")
    max_candidates: int = Field(600, alias="MAX_CANDIDATES")
    diversity_penalty: float = Field(0.05)

    recommendation_cache_enabled: bool = Field(True, alias="RECOMMENDATION_CACHE_ENABLED")
    recommendation_cache_ttl_seconds: int = Field(3600)

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=(
            Path(__file__).resolve().parent.parent / ".env",
            Path.cwd() / ".env",
        ),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
