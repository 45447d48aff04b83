# utils/logging_middleware.py
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("access")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access-log line per request, tagged with the query-string identity if any."""

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()

        response = await call_next(request)

        duration = time.monotonic() - start
        requester = request.query_params.get("userId") or request.query_params.get("adminId") or "-"
        logger.info(
            "%s %s [%s] -> %s (%.2fs)",
            request.method,
            request.url.path,
            requester,
            response.status_code,
            duration,
        )

        return response
