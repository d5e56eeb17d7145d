"""
Inkpost Backend — Access Log Middleware
=========================================

What:  One log line per HTTP request on the "inkpost.access" logger.
How:   Times the downstream call and logs method, path, status, duration,
       request id, client address and (for authenticated calls) the user id.

Level follows the status: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
Request bodies, uploaded files and Authorization headers are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("inkpost.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        # set by the auth gate on protected routes
        identity = getattr(request.state, "identity", None)
        user_id = str(identity.id) if identity is not None else "-"

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "client_ip": client_ip,
            },
        )
        return response
