"""
Taskforge Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request on the `taskforge.access` logger.
How:   Times the downstream call. The line names the matched route template
       (`/api/tasks/{task_id}`) rather than the raw path, so resource ids do
       not end up in the access log and lines group by endpoint.
When:  Runs inside RequestIDMiddleware, so the request id is already set.

Line format:
    PATCH /api/tasks/{task_id} 404 3.2ms [a1b2c3d4]

Not logged: bodies, query strings, and the Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from taskforge.middleware.request_id import request_id_var

logger = logging.getLogger("taskforge.access")

# Probed every few seconds by orchestrators
SKIP_PATHS = frozenset({"/health"})


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


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
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors still get their access line before propagating
            self._log(request, 500, start)
            raise

        self._log(request, response.status_code, start)
        return response

    @staticmethod
    def _log(request: Request, status: int, start: float) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        rid = request_id_var.get("")
        route = _route_template(request)
        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s]",
            request.method,
            route,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": request.method,
                "route": route,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
