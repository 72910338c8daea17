"""
Correlation ID management for request tracing.

The ID set here is picked up by the structured log formatter, so every log
line emitted while serving a request (including provider calls) carries it.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in context."""
    _correlation_id_var.set(correlation_id)


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


@contextmanager
def correlation_id_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """
    Context manager for correlation ID scope.

    Args:
        correlation_id: Optional correlation ID. If None, generates a new one.

    Yields:
        The correlation ID being used.
    """
    cid = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(cid)
    try:
        yield cid
    finally:
        _correlation_id_var.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract or generate correlation ID for each request.

    Extracts correlation ID from incoming headers or generates a new one.
    Adds correlation ID to response headers.
    """

    def __init__(
        self,
        app: Any,
        header_name: str = CORRELATION_ID_HEADER,
        generator: Callable[[], str] = generate_correlation_id,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = (
            request.headers.get(self.header_name)
            or request.headers.get(REQUEST_ID_HEADER)
            or self.generator()
        )

        with correlation_id_context(correlation_id) as cid:
            response = await call_next(request)
            response.headers[self.header_name] = cid
            return response
