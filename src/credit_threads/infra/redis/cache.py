"""Redis segment cache for credit_threads.

Caches decoded segment contents, keyed by segment checksum, so hot
history pages skip gunzip and validation.
"""

from pydantic import TypeAdapter, ValidationError

from credit_threads.infra.redis.client import RedisClient
from credit_threads.interfaces.cache import SegmentCacheInterface
from credit_threads.logging import get_logger
from credit_threads.models.message import MessageDTO

__all__ = [
    "SegmentCache",
]

logger = get_logger(__name__)

_MESSAGES = TypeAdapter(list[MessageDTO])


class SegmentCache(SegmentCacheInterface):
    """Redis cache for decoded segments.

    Falls back gracefully if Redis is unavailable: every lookup is a miss.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        ttl: int = 3600,  # 1 hour
        prefix: str = "seg:",
    ) -> None:
        """Initialize segment cache.

        Args:
            redis_client: Redis client instance
            ttl: Cache TTL in seconds (default: 1 hour)
            prefix: Key prefix for segment cache
        """
        self._redis = redis_client
        self._ttl = ttl
        self._prefix = prefix

    def _make_key(self, checksum: str) -> str:
        """Generate cache key for a segment checksum."""
        return f"{self._prefix}{checksum}"

    async def get(self, checksum: str) -> list[MessageDTO] | None:
        """Get cached messages for a segment checksum."""
        if not self._redis.is_connected:
            return None

        cached = await self._redis.get(self._make_key(checksum))
        if cached is None:
            return None

        try:
            return _MESSAGES.validate_json(cached)
        except ValidationError:
            logger.debug("segment_cache_entry_invalid", checksum=checksum)
            return None

    async def set(self, checksum: str, messages: list[MessageDTO]) -> bool:
        """Cache decoded messages for a segment checksum."""
        if not self._redis.is_connected:
            return False

        return await self._redis.set(
            self._make_key(checksum),
            _MESSAGES.dump_json(messages),
            ex=self._ttl,
        )
