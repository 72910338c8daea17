"""
Health context models supplied by callers to the adapters.

All models are frozen: adapters treat the context as read-only input.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Lifestyle(BaseModel):
    """Lifestyle habits used to personalize tips."""

    exercise_frequency: str | None = None
    sleep_hours: float | None = None
    diet_type: str | None = None
    smoking_status: str | None = None
    alcohol_consumption: str | None = None
    stress_level: str | None = None

    model_config = {"frozen": True}


class UserProfile(BaseModel):
    """Health profile of the user asking for guidance."""

    age: int | None = Field(default=None, ge=0, le=150)
    gender: str | None = None
    conditions: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    language: str | None = None
    lifestyle: Lifestyle | None = None

    model_config = {"frozen": True}


class ConversationTurn(BaseModel):
    """A single message of a previous conversation."""

    role: str
    content: str
    timestamp: datetime | None = None

    model_config = {"frozen": True}


class HealthContext(BaseModel):
    """Caller-supplied bundle of profile and recent conversation.

    ``conversation_history`` is ordered oldest to newest, as supplied.
    """

    user_profile: UserProfile | None = None
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    language: str = "en"

    model_config = {"frozen": True}
