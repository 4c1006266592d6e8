"""Paginated reader for credit_threads.

This module serves reverse-chronological pages of a conversation while
decoding as few segments as possible.
"""

from datetime import datetime

from credit_threads.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from credit_threads.domain.segment import Segment
from credit_threads.exceptions import ConversationNotFound
from credit_threads.interfaces.cache import SegmentCacheInterface
from credit_threads.interfaces.store import ConversationStoreInterface
from credit_threads.logging import get_logger
from credit_threads.models.message import MessageDTO
from credit_threads.services.codec import MessageCodec
from credit_threads.utils.timestamps import to_utc

__all__ = [
    "PaginatedReader",
]

logger = get_logger(__name__)


class PaginatedReader:
    """Read pages of messages newest-first, returned oldest-first.

    Segments are walked from the newest to the oldest and decoded one at
    a time, only while the page still needs messages. Each decoded segment
    is filtered against the ``before`` cursor message by message, since
    caller-supplied timestamps are not guaranteed to increase.

    Reads work on one snapshot of the conversation: messages committed
    while a page is being assembled are not part of that page.

    Example:
        reader = PaginatedReader(store)
        latest = await reader.read(conversation_id, limit=50)
        older = await reader.read(conversation_id, limit=50, before=latest[0].created_at)
    """

    def __init__(
        self,
        store: ConversationStoreInterface,
        codec: MessageCodec | None = None,
        cache: SegmentCacheInterface | None = None,
        default_limit: int = DEFAULT_PAGE_LIMIT,
        max_limit: int = MAX_PAGE_LIMIT,
    ) -> None:
        """Initialize reader with dependencies.

        Args:
            store: Conversation store
            codec: Segment codec (default: MessageCodec())
            cache: Optional decoded segment cache
            default_limit: Page size when none is given (default: 50)
            max_limit: Upper bound for page size (default: 500)
        """
        self._store = store
        self._codec = codec or MessageCodec()
        self._cache = cache
        self._default_limit = default_limit
        self._max_limit = max_limit

    def clamp_limit(self, limit: int | None) -> int:
        """Clamp a requested page size into [1, max_limit]."""
        if limit is None:
            limit = self._default_limit
        return max(1, min(limit, self._max_limit))

    async def read(
        self,
        conversation_id: str,
        limit: int | None = None,
        before: datetime | None = None,
    ) -> list[MessageDTO]:
        """Read up to limit messages strictly before the cursor.

        Args:
            conversation_id: Conversation to read
            limit: Page size, clamped to [1, max_limit]
            before: Only messages created strictly before this time

        Returns:
            Messages in chronological order; fewer than limit only when
            the conversation has no more eligible messages

        Raises:
            ConversationNotFound: If the conversation does not exist
            CorruptSegment: If a needed segment fails verification
        """
        limit = self.clamp_limit(limit)
        if before is not None:
            before = to_utc(before)

        conversation = await self._store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)

        results: list[MessageDTO] = []
        decoded = 0

        for segment in reversed(conversation.segments):
            if len(results) >= limit:
                break

            messages = await self._load(segment)
            decoded += 1
            if before is not None:
                messages = [m for m in messages if m.created_at < before]

            for message in reversed(messages):
                if len(results) >= limit:
                    break
                results.append(message)

        results.reverse()

        logger.debug(
            "page_read",
            conversation_id=conversation_id,
            limit=limit,
            returned=len(results),
            segments_total=len(conversation.segments),
            segments_decoded=decoded,
        )
        return results

    async def _load(self, segment: Segment) -> list[MessageDTO]:
        """Decode a segment, going through the cache when one is configured."""
        if self._cache is None:
            return self._codec.open_segment(segment)

        # The payload must match its checksum before a cached decode keyed
        # by that checksum can stand in for it.
        self._codec.verify_checksum(segment)
        cached = await self._cache.get(segment.checksum)
        if cached is not None:
            self._codec.verify_contents(segment, cached)
            return cached

        messages = self._codec.open_segment(segment)
        await self._cache.set(segment.checksum, messages)
        return messages
