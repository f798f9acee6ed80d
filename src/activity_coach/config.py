"""Configuration settings for the Activity Coach service."""

import os
from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/activity_coach/config.py
# .parent.parent.parent = repository root
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent

DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Text generation (any OpenAI-compatible chat completions endpoint)
    llm_api_key: str = ""
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = "gemini-2.0-flash"
    llm_max_tokens: int = 300
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 20.0
    llm_max_retries: int = 2

    # Strava (token is provisioned by the auth flow, never stored here)
    strava_access_token: str = ""
    strava_base_url: str = "https://www.strava.com/api/v3"
    strava_per_page: int = 30

    # Offline source: JSON array of activities, used instead of Strava when set
    activities_file: Optional[Path] = None

    default_time_range: str = "week"

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def resolved_llm_api_key(self) -> str:
        """API key from settings, falling back to the provider env vars."""
        return (
            self.llm_api_key
            or os.environ.get("OPENAI_API_KEY", "")
            or os.environ.get("GEMINI_API_KEY", "")
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
