"""
FTW Community Backend — Rate Limiting Middleware
=================================================

What:  Per-IP sliding-window request limiter.
How:   Keeps each client's request timestamps for the last `window` seconds.
       A request arriving when `max_requests` timestamps are still inside
       the window is answered with 429 and a Retry-After header computed
       from the oldest timestamp.

Single-process only: the counters live in this worker's memory. Running
several workers multiplies the effective limit by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ftw_community.config import settings
from ftw_community.exceptions import RateLimitExceededError
from ftw_community.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        max_requests:  requests allowed per window (settings.rate_limit_requests)
        window:        window length in seconds (settings.rate_limit_window)
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    # Forget idle clients once this many are tracked
    PRUNE_THRESHOLD = 10_000

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        recent.append(now)
        if len(self._requests) > self.PRUNE_THRESHOLD:
            self._prune(window_start)

        return await call_next(request)

    @staticmethod
    def _reject(exc: RateLimitExceededError) -> JSONResponse:
        # Middleware runs outside the app's exception handlers, so the 429
        # body is built here in the same shape they use.
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": {"retry_after": exc.retry_after},
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _prune(self, window_start: float) -> None:
        idle = [
            ip for ip, stamps in self._requests.items()
            if not stamps or stamps[-1] <= window_start
        ]
        for ip in idle:
            del self._requests[ip]
        if idle:
            logger.debug("Dropped %d idle client(s) from the rate limiter", len(idle))
