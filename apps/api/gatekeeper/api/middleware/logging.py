"""
Access log middleware.
"""

import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gatekeeper.utils.context import get_client_ip, get_request_context, get_request_id

logger = logging.getLogger("gatekeeper.access")

SLOW_REQUEST_MS = 1000


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request, with status and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        ctx = get_request_context()

        level = logging.WARNING if duration_ms > SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            "%s %s %s %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": get_request_id(),
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": get_client_ip(request),
                "user_id": ctx.user_id if ctx else None,
            },
        )

        return response
