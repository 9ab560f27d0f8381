"""Runtime settings for the Anything AI backend.

Every value is read once at process start from ``ANYTHINGAI_*`` environment
variables (or a local ``.env``).  The upstream key may also come from the
conventional ``ANTHROPIC_API_KEY``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_SECRET = "dev-secret-change-in-production"


def _default_data_dir() -> Path:
    return Path.home() / ".anythingai"


class Settings(BaseSettings):
    """Process-wide configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ANYTHINGAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream model
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "anthropic_api_key", "ANYTHINGAI_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"
        ),
    )
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    max_output_tokens: int = 8192
    temperature: float = 0.7
    upstream_timeout: float = 60.0
    upstream_max_retries: int = 4
    upstream_initial_backoff: float = 1.0

    # Admission control
    queue_concurrency: int = Field(default=3, ge=1)
    rate_limit_max: int = Field(default=30, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    rate_limit_cleanup_interval: float = Field(default=300.0, gt=0)

    # Auth
    token_secret: str = DEFAULT_TOKEN_SECRET
    token_ttl_hours: int = 168
    password_hash_rounds: int = Field(default=12, ge=4, le=31)

    # Storage
    data_dir: Path = Field(default_factory=_default_data_dir)

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3001
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Context providers
    web_search_mode: Literal["auto", "always", "off"] = "auto"
    web_search_provider: Literal["auto", "tavily", "brave", "serpapi", "duckduckgo"] = "auto"
    search_snippet_only: bool = False
    tavily_api_key: str | None = None
    brave_search_api_key: str | None = None
    serpapi_api_key: str | None = None

    # Prompt assembly
    history_window: int = Field(default=20, ge=0)
    history_gate: bool = True

    log_level: str = "INFO"

    @classmethod
    def load(cls) -> Settings:
        """Build settings from the environment."""
        return cls()

    @property
    def usage_log_path(self) -> Path:
        return self.data_dir / "logs" / "usage.jsonl"

    @property
    def store_path(self) -> Path:
        return self.data_dir / "store"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the settings loaded at first use."""
    return Settings.load()
