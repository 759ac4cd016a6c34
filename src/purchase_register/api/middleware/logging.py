"""
Logging middleware for request/response tracking.

The request id and the session's own RUC are bound as structlog context
variables, so log lines from services invoked by the request carry them too.
"""

import time
import uuid
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from purchase_register.config import get_logger

logger = get_logger(__name__)


def _taxpayer_ruc(request: Request) -> str | None:
    session = getattr(request.app.state, "session", None)
    if session is None:
        return None
    return session.credentials.get().ruc


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion, and timing."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start = time.perf_counter()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            taxpayer_ruc=_taxpayer_ruc(request),
        ):
            logger.info("request_started", method=request.method, path=request.url.path)

            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000

            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
