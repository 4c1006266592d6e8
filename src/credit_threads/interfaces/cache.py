"""Segment cache interface for credit_threads."""

from typing import Protocol, runtime_checkable

from credit_threads.models.message import MessageDTO

__all__ = [
    "SegmentCacheInterface",
]


@runtime_checkable
class SegmentCacheInterface(Protocol):
    """Contract for caching decoded segments.

    Entries are keyed by segment checksum. A checksum identifies the exact
    compressed payload, so an entry can never go stale; it can only stop
    being referenced.
    """

    async def get(self, checksum: str) -> list[MessageDTO] | None:
        """Get decoded messages for a checksum.

        Args:
            checksum: Segment checksum

        Returns:
            Decoded messages if cached, None otherwise
        """
        ...

    async def set(self, checksum: str, messages: list[MessageDTO]) -> bool:
        """Cache decoded messages for a checksum.

        Args:
            checksum: Segment checksum
            messages: Decoded, verified messages

        Returns:
            True if cached successfully
        """
        ...
