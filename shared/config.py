"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM
    google_api_key: str = ""
    default_model: str = "gemini-2.5-flash"
    max_output_tokens: int = 4000
    temperature: float = 0.7

    # TestRail
    # Seconds before a TestRail request is abandoned (httpx default otherwise)
    testrail_timeout: float = 30.0

    # Portal
    portal_host: str = "0.0.0.0"
    portal_port: int = 3001
    # Base URL the terminal client talks to
    portal_url: str = "http://localhost:3001"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
