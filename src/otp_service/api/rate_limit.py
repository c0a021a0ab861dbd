"""Fixed-window, per-client request limiter."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# 100 requests per client per 15 minutes.
MAX_REQUESTS = 100
WINDOW_SECONDS = 15 * 60

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects a client's requests with 429 once it exceeds the window quota.

    Counters reset when a client's window elapses; idle windows are pruned
    as a side effect of later requests.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = MAX_REQUESTS,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._hits: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def client_key(request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def _hit(self, key: str) -> tuple[bool, int]:
        """Count a request for *key*; return (allowed, seconds until reset)."""
        now = self._clock()
        with self._lock:
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self._window:
                start, count = now, 0
            count += 1
            self._hits[key] = (start, count)
            if len(self._hits) > 10_000:
                self._prune(now)
        retry_after = max(0, int(start + self._window - now))
        return count <= self._max, retry_after

    def _prune(self, now: float) -> None:
        stale = [k for k, (start, _) in self._hits.items() if now - start >= self._window]
        for key in stale:
            del self._hits[key]

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        key = self.client_key(request)
        allowed, retry_after = self._hit(key)
        if not allowed:
            logger.warning("Rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": RATE_LIMIT_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
