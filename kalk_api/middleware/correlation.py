# Correlation ID Middleware
"""Request correlation ID tracking for log lines and responses."""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("kalk.middleware.correlation")

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Reuses the caller's X-Correlation-ID or generates one."""

    CORRELATION_HEADER = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(self.CORRELATION_HEADER) or str(uuid.uuid4())

        _correlation_id.set(correlation_id)
        request.state.correlation_id = correlation_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        logger.info(
            f"[{correlation_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} ({elapsed_ms}ms)"
        )

        response.headers[self.CORRELATION_HEADER] = correlation_id
        return response
