from __future__ import annotations

import sys
from functools import lru_cache
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SLOPCHECK_")

    # Server
    environment: str = "development"
    log_level: str = "info"
    log_format: str = "json"
    allow_cors_origins: List[str] = ["*"]

    # Sessions
    session_secret: Optional[str] = None
    session_max_age_seconds: int = 900  # 15 minutes
    session_cookie_name: str = "slopcheck_session"
    session_header_name: str = "x-slopcheck-session"

    # Rate limiting (redis://host:6379/0 in production, memory:// for a single process)
    rate_limit_storage_uri: Optional[str] = None
    analyze_rate_limit: str = "1/30 seconds"
    session_rate_limit: str = "20/minute"

    # Input limits
    max_post_length: int = 280
    max_display_name_length: int = 50

    # Scoring backend (any OpenAI-compatible chat completions API)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-5-chat-latest"
    openai_temperature: float = 0.3
    openai_timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def validate_session_secret(self) -> "Settings":
        """Refuse to start outside development without a signing secret."""
        if self.environment != "development" and not self.session_secret:
            print(
                "\nFATAL: SLOPCHECK_SESSION_SECRET is not set.\n"
                "   Session tokens cannot be signed without it.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(48))\"\n",
                file=sys.stderr,
            )
            raise ValueError(
                "Session secret is required in non-development environments. "
                "Set SLOPCHECK_SESSION_SECRET env var."
            )
        return self

    @property
    def session_max_age_ms(self) -> int:
        return self.session_max_age_seconds * 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
