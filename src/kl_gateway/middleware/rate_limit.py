"""Rate limiting middleware: Redis fixed-window counters per client IP.

Rules:
  - POST /api/v1/auth/login: RATE_LIMIT_LOGIN_MAX per window (anti brute-force)
  - everything else under /api/: RATE_LIMIT_MAX_REQUESTS per window

Redis logic:
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, window)
    if count > limit: 429 + Retry-After

If Redis is unreachable the request is let through and a warning logged;
rate limiting never takes the node down.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from src.kl_common.errors import RateLimitError
from src.kl_common.response import error_response

logger = logging.getLogger("kl.request")

_LOGIN_PATH = "/api/v1/auth/login"


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop if behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        max_requests: int = 100,
        login_max: int = 5,
        window_seconds: int = 900,
    ) -> None:
        super().__init__(app)
        self._redis_factory = redis_factory
        self._max_requests = max_requests
        self._login_max = login_max
        self._window = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not path.startswith("/api/"):
            return await call_next(request)

        if request.method == "POST" and path == _LOGIN_PATH:
            group, limit = "login", self._login_max
        else:
            group, limit = "api", self._max_requests
        key = f"ratelimit:{client_ip(request)}:{group}"

        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, self._window)
            retry_after = await redis.ttl(key) if count > limit else 0
        except (RedisError, OSError) as e:
            logger.warning("Rate limiter unavailable, allowing request: %s", e)
            return await call_next(request)

        if count > limit:
            logger.warning("Rate limit exceeded for %s (%s, %d/%d)", key, group, count, limit)
            err = RateLimitError()
            resp = error_response(err.code, err.message)
            resp.request_id = getattr(request.state, "request_id", resp.request_id)
            return JSONResponse(
                status_code=err.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(max(retry_after, 1))},
            )
        return await call_next(request)
