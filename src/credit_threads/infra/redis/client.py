"""Redis client for credit_threads.

This module provides an optional async Redis client wrapper.
Redis only backs the decoded segment cache - if it is not configured
or unreachable, reads simply decode every segment they need.
"""

from typing import TYPE_CHECKING, Any

from credit_threads.config import RedisSettings
from credit_threads.logging import get_logger
from credit_threads.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from redis.asyncio import Redis

__all__ = [
    "RedisClient",
]

logger = get_logger(__name__)

get_async_redis = lazy_import("redis.asyncio", "Redis")


class RedisClient:
    """Async Redis client wrapper (optional).

    Operations never raise on connection problems: reads report a miss
    and writes report failure.

    Example:
        client = RedisClient(settings)
        if await client.connect():
            await client.set("key", b"value", ex=60)
            value = await client.get("key")
        await client.disconnect()
    """

    def __init__(self, settings: RedisSettings) -> None:
        """Initialize client with settings.

        Args:
            settings: Redis connection settings
        """
        self._settings = settings
        self._redis: "Redis | None" = None
        self._connected = False

    @property
    def is_enabled(self) -> bool:
        """Check if Redis is enabled in configuration."""
        return self._settings.enabled and self._settings.url is not None

    @property
    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._connected

    async def connect(self) -> bool:
        """Initialize connection to Redis.

        Returns:
            True if connected successfully, False otherwise
        """
        if self._redis is not None:
            return self._connected

        if not self.is_enabled:
            logger.info("redis_disabled", reason="not configured")
            return False

        try:
            Redis = get_async_redis()  # noqa: N806
            # Segment payloads are bytes, so responses are not decoded
            self._redis = Redis.from_url(self._settings.url)
            await self._redis.ping()
            self._connected = True
            logger.info("connected_to_redis", url=self._settings.url)
            return True
        except Exception as e:
            logger.warning(
                "redis_connection_failed",
                error=str(e),
                reason="Redis unavailable, segment cache disabled",
            )
            self._redis = None
            self._connected = False
            return False

    async def disconnect(self) -> None:
        """Close connection to Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._connected = False
            logger.info("disconnected_from_redis")

    async def get(self, key: str) -> bytes | None:
        """Get value from Redis.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/not connected
        """
        if not self._connected or not self._redis:
            return None
        try:
            return await self._redis.get(key)
        except Exception as e:
            logger.debug("redis_get_error", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        value: bytes,
        ex: int | None = None,
    ) -> bool:
        """Set value in Redis.

        Args:
            key: Cache key
            value: Value to cache
            ex: Expiration time in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self._connected or not self._redis:
            return False
        try:
            await self._redis.set(key, value, ex=ex)
            return True
        except Exception as e:
            logger.debug("redis_set_error", key=key, error=str(e))
            return False

    async def __aenter__(self) -> "RedisClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()
