"""Redis infrastructure for credit_threads (optional)."""

from credit_threads.infra.redis.cache import SegmentCache
from credit_threads.infra.redis.client import RedisClient

__all__ = ["RedisClient", "SegmentCache"]
