"""
Per-request correlation.

Accepts a well-formed incoming ``X-Request-ID`` (or mints one), binds it into
the structlog context for the duration of the request, logs one line per
request and echoes the ids back on the response. ``X-Correlation-ID`` is
passed through untouched when it is well-formed.
"""

import re
import time
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from flapframes.core.context import clear_context, generate_request_id, set_correlation_id, set_request_id
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Header values end up in log lines; only accept short token-like ids
_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")


def _clean_id(value: Optional[str]) -> Optional[str]:
    return value if value and _ID_PATTERN.fullmatch(value) else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _clean_id(request.headers.get(REQUEST_ID_HEADER)) or generate_request_id()
        correlation_id = _clean_id(request.headers.get(CORRELATION_ID_HEADER))

        set_request_id(request_id)
        if correlation_id:
            set_correlation_id(correlation_id)

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            finally:
                clear_context()
            logger.info(
                "request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        if correlation_id:
            response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
