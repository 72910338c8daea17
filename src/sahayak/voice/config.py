"""
Voice provider configuration.

The credential is optional at load time; the adapter refuses to start a
session without one.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VoiceConfig(BaseSettings):
    """Vapi provider configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="VAPI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = Field(default="")
    base_url: str = Field(default="https://api.vapi.ai")
    timeout_seconds: float = Field(default=30.0, gt=0, le=300)

    # Tag stored in call metadata so webhook traffic can be traced back to us
    source_tag: str = Field(default="aarogya_sahayak")


def get_voice_config() -> VoiceConfig:
    return VoiceConfig()
