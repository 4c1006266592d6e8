"""Append coordinator for credit_threads.

This module decides where an incoming message goes (the open segment or
a fresh one) and commits the change with an optimistic, fingerprint
guarded conditional update.
"""

from collections.abc import Sequence

from credit_threads.config import (
    MAX_APPEND_ATTEMPTS,
    SEGMENT_BYTE_THRESHOLD,
    SEGMENT_MESSAGE_LIMIT,
)
from credit_threads.domain.conversation import Conversation
from credit_threads.exceptions import AppendConflict, ConversationNotFound
from credit_threads.interfaces.store import ConversationStoreInterface
from credit_threads.logging import get_logger
from credit_threads.models.conversation import AppendResult, LastMessageDTO
from credit_threads.models.message import MessageDTO
from credit_threads.services.codec import MessageCodec
from credit_threads.services.transaction import OptimisticTransaction, RetriesExhausted
from credit_threads.utils.hashing import generate_message_id

__all__ = [
    "AppendCoordinator",
]

logger = get_logger(__name__)


class AppendCoordinator:
    """Append messages to a conversation without locks.

    Each attempt reads a fresh snapshot and submits exactly one
    conditional commit:
    - no segments: insert the first segment if the list is still empty
    - rotation threshold hit: push a new one-message segment if the
      previous last segment is still last
    - otherwise: replace the open segment with an extended copy if its
      fingerprint (count, last timestamp, checksum) is unchanged

    Every commit also increments total_messages and overwrites
    last_message in the same atomic update.

    Example:
        coordinator = AppendCoordinator(store)
        result = await coordinator.append(conversation_id, message)
        print(result.total_messages)
    """

    def __init__(
        self,
        store: ConversationStoreInterface,
        codec: MessageCodec | None = None,
        segment_message_limit: int = SEGMENT_MESSAGE_LIMIT,
        segment_byte_threshold: int = SEGMENT_BYTE_THRESHOLD,
        max_attempts: int = MAX_APPEND_ATTEMPTS,
    ) -> None:
        """Initialize coordinator with dependencies.

        Args:
            store: Conversation store
            codec: Segment codec (default: MessageCodec())
            segment_message_limit: Max messages per segment (default: 100)
            segment_byte_threshold: Max uncompressed bytes per segment (default: 64 KiB)
            max_attempts: Optimistic attempts before AppendConflict (default: 5)
        """
        self._store = store
        self._codec = codec or MessageCodec()
        self._segment_message_limit = segment_message_limit
        self._segment_byte_threshold = segment_byte_threshold
        self._transaction: OptimisticTransaction[Conversation] = OptimisticTransaction(
            "append", max_attempts
        )

    async def append(self, conversation_id: str, message: MessageDTO) -> AppendResult:
        """Append one message to a conversation.

        The message ID is assigned here when the caller left it empty and
        stays the same across retries.

        Args:
            conversation_id: Target conversation
            message: Fully populated message

        Returns:
            AppendResult describing the committed state

        Raises:
            ConversationNotFound: If the conversation does not exist
            AppendConflict: If every attempt lost a race
            CorruptSegment: If the open segment fails verification
        """
        if message.id is None:
            message = message.model_copy(update={"id": generate_message_id()})
        last_message = LastMessageDTO.from_message(message)

        async def attempt(number: int) -> Conversation | None:
            snapshot = await self._store.get_conversation(conversation_id)
            if snapshot is None:
                raise ConversationNotFound(conversation_id)
            snapshot.verify_totals()
            return await self._commit(snapshot, message, last_message)

        try:
            committed, attempts = await self._transaction.run(
                attempt, conversation_id=conversation_id
            )
        except RetriesExhausted as e:
            raise AppendConflict(conversation_id, e.attempts) from e

        logger.debug(
            "message_appended",
            conversation_id=conversation_id,
            message_id=message.id,
            total_messages=committed.total_messages,
            attempts=attempts,
        )
        return AppendResult(
            message=message,
            total_messages=committed.total_messages,
            last_message=committed.last_message or last_message,
            segment_count=committed.segment_count,
            attempts=attempts,
        )

    def should_rotate(self, existing: Sequence[MessageDTO], message: MessageDTO) -> bool:
        """Check whether adding message to the open segment would cross a threshold."""
        if len(existing) + 1 > self._segment_message_limit:
            return True
        size = self._codec.encoded_size(existing) + self._codec.encoded_message_size(message)
        return size > self._segment_byte_threshold

    async def _commit(
        self,
        snapshot: Conversation,
        message: MessageDTO,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Build the change for one snapshot and submit it conditionally."""
        last_segment = snapshot.last_segment

        if last_segment is None:
            segment = self._codec.build_segment([message])
            return await self._store.insert_first_segment(snapshot.id, segment, last_message)

        existing = self._codec.open_segment(last_segment)

        if self.should_rotate(existing, message):
            segment = self._codec.build_segment([message])
            committed = await self._store.push_segment(
                snapshot.id,
                last_segment.fingerprint,
                snapshot.last_segment_index,
                segment,
                last_message,
            )
            if committed is not None:
                logger.info(
                    "segment_rotated",
                    conversation_id=snapshot.id,
                    closed_segment_id=last_segment.segment_id,
                    closed_message_count=last_segment.message_count,
                    segment_count=committed.segment_count,
                )
            return committed

        segment = self._codec.build_segment(
            [*existing, message],
            segment_id=last_segment.segment_id,
            created_at=last_segment.created_at,
        )
        return await self._store.replace_last_segment(
            snapshot.id,
            last_segment.fingerprint,
            snapshot.last_segment_index,
            segment,
            last_message,
        )
