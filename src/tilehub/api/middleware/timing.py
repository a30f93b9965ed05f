"""Timing middleware: adds ``X-Process-Time-Ms`` and logs every request.

Tile builds are slow by construction (one serialized provider call at a
time), so server-side latency is exposed on every response and recorded
as a ``request_completed`` event. Requests slower than
``SLOW_REQUEST_MS`` log at warning level.

Tags:
    tilehub, api, middleware, timing, latency
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tilehub.core.logging import get_logger

logger = get_logger(__name__)

SLOW_REQUEST_MS = 10_000.0


class TimingMiddleware(BaseHTTPMiddleware):
    """Measure, expose and log request processing time in milliseconds."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time-Ms"] = str(elapsed_ms)

        log = logger.warning if elapsed_ms >= SLOW_REQUEST_MS else logger.info
        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            request_id=getattr(request.state, "request_id", None),
        )
        return response
