"""Redis-backed rate limiting for credential endpoints."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Callable, Iterable, Protocol, runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from core import settings
from core.errors import error_envelope, kind_for_status

logger = logging.getLogger(__name__)

DEFAULT_LIMITED_ROUTES = frozenset({("POST", "/users/authenticate")})


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


def default_client_identifier(request: Request) -> str:
    """Key requests by the connecting address."""
    host = request.client.host if request.client else None
    return host or "anonymous"


class RateLimiter:
    """Simple fixed-window rate limiter backed by Redis."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = "rate-limit",
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    async def allow(self, key: str) -> bool:
        """Return True when the request should be allowed, False if limited."""
        if self.limit == 0 or self.window_seconds == 0:
            return True

        bucket = int(time.time()) // self.window_seconds
        redis_key = f"{self.prefix}:{key}:{bucket}"

        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count <= self.limit


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton accessor for the shared rate limiter."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Override the cached rate limiter (primarily for tests)."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        error_envelope(status_code, kind_for_status(status_code), message),
        status_code=status_code,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforce the configured limit on the listed (method, path) routes."""

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        limited_routes: Iterable[tuple[str, str]] | None = None,
        client_identifier: Callable[[Request], str] | None = None,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.limited_routes = frozenset(
            (method.upper(), path)
            for method, path in (limited_routes or DEFAULT_LIMITED_ROUTES)
        )
        self.client_identifier = client_identifier or default_client_identifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        if (request.method.upper(), request.url.path) not in self.limited_routes:
            return await call_next(request)

        override = getattr(request.app.state, "rate_limiter_override", None)
        try:
            limiter = override if override is not None else self.limiter_factory()
            is_allowed = await limiter.allow(self.client_identifier(request) or "anonymous")
        except Exception:
            # Credential endpoints fail closed when the limiter backend is down.
            logger.exception("Rate limiter unavailable for %s", request.url.path)
            return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Service unavailable")

        if not is_allowed:
            return _error_response(status.HTTP_429_TOO_MANY_REQUESTS, "Too Many Requests")

        return await call_next(request)
