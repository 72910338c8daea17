"""
Request and response schemas for the HTTP surface.
"""

from typing import Any

from pydantic import BaseModel, Field

from sahayak.health.context import HealthInsight, RecordAnalysis
from sahayak.health.languages import DEFAULT_LANGUAGE
from sahayak.health.models import HealthContext, UserProfile


class UserDocuments(BaseModel):
    """Stored user documents a HealthContext can be derived from.

    ``user`` carries ``id``, ``language`` and ``date_of_birth``; ``profile``
    is the health profile document.
    """

    user: dict[str, Any]
    profile: dict[str, Any] | None = None
    conversations: list[dict[str, Any]] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Health question with optional caller context.

    An explicit ``context`` wins over ``user_documents``.
    """

    message: str
    context: HealthContext | None = None
    user_documents: UserDocuments | None = None
    language: str = DEFAULT_LANGUAGE


class TipsRequest(BaseModel):
    profile: UserProfile | None = None
    language: str = DEFAULT_LANGUAGE


class SymptomsRequest(BaseModel):
    symptoms: list[str] = Field(default_factory=list)
    profile: UserProfile | None = None
    language: str = DEFAULT_LANGUAGE


class VoiceSessionRequest(BaseModel):
    context: HealthContext | None = None
    user_documents: UserDocuments | None = None


class PhoneCallRequest(BaseModel):
    phone_number: str | None = None
    assistant_id: str | None = None
    context: HealthContext | None = None
    user_documents: UserDocuments | None = None


class HealthInsightsRequest(UserDocuments):
    records: list[dict[str, Any]] = Field(default_factory=list)


class HealthInsightsResponse(BaseModel):
    context: HealthContext
    analysis: RecordAnalysis
    insights: list[HealthInsight]


class InvocationResponse(BaseModel):
    """JSON form of an adapter InvocationResult."""

    success: bool
    payload: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None
    error_code: str | None = None
    fallback: Any = None


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail
