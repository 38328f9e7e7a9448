"""
Boundary middleware - rate limiting and security headers.

Rate limiting is a per-client-IP fixed window kept in process memory:
- POST /auth/register: 5 requests per 15 minutes
- every other path except /health and docs: 100 requests per 15 minutes

Exceeding a limit returns 429 RATE_LIMIT_EXCEEDED with Retry-After.
Counters are per process; there is no shared backend.
"""

import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.api.errors import error_response

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add conservative security headers to every response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window rate limiter keyed by (rule, client IP).

    Attributes:
        _register_limit: Requests allowed to /auth/register per window.
        _api_limit: Requests allowed to any other limited path per window.
        _window_seconds: Window length.
    """

    REGISTER_PATH = "/auth/register"

    def __init__(
        self,
        app: ASGIApp,
        *,
        register_limit: int = 5,
        api_limit: int = 100,
        window_seconds: int = 900,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self._register_limit = register_limit
        self._api_limit = api_limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[tuple[str, str], _Window] = {}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        if self._should_skip(path):
            return await call_next(request)

        if path == self.REGISTER_PATH:
            rule, limit = "register", self._register_limit
            message = "Too many registration attempts. Please try again later."
        else:
            rule, limit = "api", self._api_limit
            message = "Too many requests. Please try again later."

        identifier = request.client.host if request.client else "unknown"
        retry_after = self._hit((rule, identifier), limit)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded: rule={rule} ip={identifier}")
            return error_response(
                429,
                "RATE_LIMIT_EXCEEDED",
                message,
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _hit(self, key: tuple[str, str], limit: int) -> int | None:
        """
        Count one request.

        Returns:
            None if allowed, otherwise seconds until the window resets
        """
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self._window_seconds:
            window = _Window(started_at=now)
            self._windows[key] = window
            self._prune(now)

        if window.count >= limit:
            return max(1, math.ceil(window.started_at + self._window_seconds - now))

        window.count += 1
        return None

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self._window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def _should_skip(self, path: str) -> bool:
        skip_prefixes = ("/health", "/docs", "/redoc", "/openapi.json")
        return path.startswith(skip_prefixes)
