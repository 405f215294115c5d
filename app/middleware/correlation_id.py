"""
Correlation ID middleware for request tracing.

Reads X-Correlation-ID from the incoming request or generates a UUID, stores
it in request.state and a contextvar, and echoes it on the response. The
webhook hands the id to its background task so pipeline log lines for an
event can be tied back to the request that delivered it.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

HEADER_CORRELATION_ID = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128

# Context var for code that doesn't have the request (pipeline, integrations)
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id(request: Request | None = None) -> str | None:
    """
    Get correlation ID for the current request.
    Prefers request.state, then contextvar. Returns None if neither set.
    """
    if request is not None and getattr(request.state, "correlation_id", None):
        return request.state.correlation_id
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in contextvar (for background tasks that receive it)."""
    _correlation_id_var.set(correlation_id)


class CorrelationIdFilter(logging.Filter):
    """Adds record.correlation_id (or "-") so format strings can include it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = _correlation_id_var.get() or "-"
        return True


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that sets correlation_id on every request.
    Reads X-Correlation-ID header if present, otherwise generates UUID.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        incoming = request.headers.get(HEADER_CORRELATION_ID)
        if incoming and incoming.strip() and len(incoming) <= MAX_CORRELATION_ID_LENGTH:
            cid = incoming.strip()
        else:
            cid = str(uuid.uuid4())
        request.state.correlation_id = cid
        token = _correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id_var.reset(token)
        # Echo back so clients can correlate
        response.headers[HEADER_CORRELATION_ID] = cid
        return response
