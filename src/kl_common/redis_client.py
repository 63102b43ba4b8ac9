"""Lazily opened Redis client for the rate limiter's fixed-window counters.

Nothing else on a node talks to Redis: chain, market and user state stay
in the node process (and the blocks table).
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)


class RedisHandle:
    def __init__(self, url: str) -> None:
        self._url = url
        self._client: aioredis.Redis | None = None

    async def get(self) -> aioredis.Redis:
        """Return the shared client, creating it on first use (no I/O yet)."""
        if self._client is None:
            self._client = aioredis.from_url(self._url, decode_responses=True)
        return self._client

    async def ping(self) -> bool:
        try:
            client = await self.get()
            return bool(await client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


redis_handle = RedisHandle(settings.REDIS_URL)
