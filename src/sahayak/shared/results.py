"""
Uniform result envelope returned by every adapter operation.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from sahayak.shared.errors import ProviderError


class InvocationResult(BaseModel):
    """Normalized outcome of a provider invocation.

    Callers branch on ``success`` alone. ``fallback`` is populated on every
    failure and never on success.
    """

    success: bool
    payload: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None
    raw_error: str | None = None
    error_code: str | None = None
    fallback: Any = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_fallback(self) -> "InvocationResult":
        if self.success and self.fallback is not None:
            raise ValueError("successful results must not carry a fallback")
        if not self.success and self.fallback is None:
            raise ValueError("failed results must carry a fallback")
        return self

    @classmethod
    def ok(cls, payload: Any, **metadata: Any) -> "InvocationResult":
        """Build a successful result."""
        return cls(success=True, payload=payload, metadata=metadata)

    @classmethod
    def failed(
        cls,
        error_message: str,
        *,
        fallback: Any,
        raw_error: str | None = None,
        error_code: str | None = None,
    ) -> "InvocationResult":
        """Build a failed result."""
        return cls(
            success=False,
            error_message=error_message,
            raw_error=raw_error,
            error_code=error_code,
            fallback=fallback,
        )

    @classmethod
    def from_error(
        cls,
        error: Exception,
        *,
        fallback: Any,
        error_message: str | None = None,
    ) -> "InvocationResult":
        """Build a failed result from a caught exception.

        ``error_message`` overrides the user-facing message; the exception
        text is always kept in ``raw_error``.
        """
        error_code = error.error_code if isinstance(error, ProviderError) else "UNEXPECTED_ERROR"
        return cls.failed(
            error_message or str(error),
            fallback=fallback,
            raw_error=str(error),
            error_code=error_code,
        )
