"""
Application configuration with environment-driven settings.
"""

from functools import lru_cache
import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "sahayak"
    app_env: Literal["dev", "qa", "uat", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Gemini text generation
    gemini_api_key: str = Field(
        default="",
        description="Google Generative Language API key",
    )
    gemini_model: str = Field(default="gemini-1.5-flash")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
    )
    gemini_timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    gemini_top_k: int = Field(default=40, ge=1)
    gemini_top_p: float = Field(default=0.95, gt=0.0, le=1.0)
    gemini_max_output_tokens: int = Field(default=1024, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return str(v).upper()

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Tests monkeypatch the environment between cases, so never hand them a frozen copy.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()
