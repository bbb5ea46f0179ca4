"""
TripAlbum Backend — Request Logging Middleware
===============================================

What:  One access log line per request on the "tripalbum.access" logger.

Line format:
    GET /api/trips 200 4.2ms [1f3a9c2e] from 127.0.0.1

The same values are attached as `extra` fields so a JSON formatter can pick
them up. Request bodies (passwords, photo bytes) are never logged, and
/health and /uploads/* are skipped: probes and image fetches would drown
the useful lines.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tripalbum.middleware.request_id import request_id_var

logger = logging.getLogger("tripalbum.access")

_SKIPPED_PREFIXES = ("/health", "/uploads/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status, duration and client address.

    5xx responses are logged at ERROR, 4xx at WARNING, everything else at INFO.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(_SKIPPED_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "acting_user_id": request.headers.get("X-User-Id"),
            },
        )
        return response
