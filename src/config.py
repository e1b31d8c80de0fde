"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    AI_RATE_LIMIT_REQUESTS,
    AI_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MAX_CHUNK_CHARS,
    PRIMARY_PROXY_TEMPLATE,
    SECONDARY_PROXY_TEMPLATE,
    SUMMARY_PREVIEW_CHUNK_CHARS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase Configuration (document storage, application layer only)
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_service_key: str | None = Field(
        default=None, description="Supabase service role key"
    )

    # Generative AI (via PydanticAI)
    default_model: str = Field(
        default="openai:gpt-4o-mini",
        description="Model used for summaries, quizzes and flashcards",
    )

    # Environment
    env: Literal["local", "railway", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # ==========================================================================
    # Fetcher Configuration
    # ==========================================================================
    # Timeouts apply per fetcher call, never to the pipeline as a whole.

    scraper_timeout_seconds: float = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        description="HTTP timeout for a single fetch (seconds)",
    )
    direct_fetch_enabled: bool = Field(
        default=True,
        description="Try a direct GET before falling back to the CORS relays",
    )
    primary_proxy_template: str = Field(
        default=PRIMARY_PROXY_TEMPLATE,
        description="First CORS relay; {url} is replaced with the encoded target",
    )
    secondary_proxy_template: str = Field(
        default=SECONDARY_PROXY_TEMPLATE,
        description="Second CORS relay, tried when the first one fails",
    )

    # ==========================================================================
    # Chunking / AI Rate Limiting
    # ==========================================================================

    max_chunk_chars: int = Field(
        default=DEFAULT_MAX_CHUNK_CHARS,
        description="Chunk size for whole-document processing (chars)",
    )
    summary_preview_chunk_chars: int = Field(
        default=SUMMARY_PREVIEW_CHUNK_CHARS,
        description="Chunk size for the summary preview (chars)",
    )
    ai_rate_limit_requests: int = Field(
        default=AI_RATE_LIMIT_REQUESTS,
        description="Max generative-AI requests per rate limit window",
    )
    ai_rate_limit_window_seconds: float = Field(
        default=AI_RATE_LIMIT_WINDOW_SECONDS,
        description="Generative-AI rate limit window (seconds)",
    )

    @property
    def proxy_templates(self) -> list[str]:
        """CORS relay templates in failover order."""
        return [
            t for t in (self.primary_proxy_template, self.secondary_proxy_template) if t
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
