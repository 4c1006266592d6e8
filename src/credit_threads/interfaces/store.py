"""Conversation store interface for credit_threads.

This module defines the Protocol every conversation backend implements.
All mutations of the segment list are conditional: they either apply
completely or report a rejection by returning None, never a partial
update.
"""

from typing import ClassVar, Protocol, runtime_checkable

from credit_threads.domain.conversation import Conversation
from credit_threads.domain.segment import Segment, SegmentFingerprint
from credit_threads.models.conversation import ConversationStatus, LastMessageDTO

__all__ = [
    "ConversationStoreInterface",
]


@runtime_checkable
class ConversationStoreInterface(Protocol):
    """Contract for conversation persistence.

    Commit methods return the conversation as it is after the commit
    (without segment payloads), or None when the guard did not match:
    either a concurrent writer got there first or the conversation is gone.
    """

    config_class: ClassVar[type | None] = None

    # Conversation operations
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        """Insert a new, empty conversation.

        If a conversation with the same ID already exists it is returned
        unchanged instead.

        Args:
            conversation: Conversation to insert

        Returns:
            The stored conversation
        """
        ...

    async def get_conversation(
        self,
        conversation_id: str,
        *,
        include_segments: bool = True,
    ) -> Conversation | None:
        """Read a consistent snapshot of a conversation.

        Args:
            conversation_id: Conversation ID
            include_segments: Load segment payloads

        Returns:
            Conversation if found, None otherwise
        """
        ...

    async def list_conversations(
        self,
        participant_id: str | None,
        skip: int,
        limit: int,
    ) -> tuple[int, list[Conversation]]:
        """List conversations, most recently updated first.

        Args:
            participant_id: Only conversations with this participant;
                None lists all
            skip: Number of conversations to skip
            limit: Maximum number of conversations to return

        Returns:
            (total matching, page of conversations without segments)
        """
        ...

    # Segment commits
    async def insert_first_segment(
        self,
        conversation_id: str,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Add the first segment, only if the segment list is still empty."""
        ...

    async def push_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        previous_index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Start a new segment after a rotation.

        Only applies if the segment identified by ``previous`` is still
        the last one, at ``previous_index``.
        """
        ...

    async def replace_last_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Replace the open segment with an extended version.

        Only applies if the segment at ``index`` is still the last one and
        still matches ``previous`` exactly (count, last timestamp, checksum).
        """
        ...

    # Case metadata operations
    async def set_status(self, conversation_id: str, status: ConversationStatus) -> bool:
        """Set the lifecycle status.

        Returns:
            True if the conversation exists
        """
        ...

    async def increment_unread(self, conversation_id: str, participant_ids: list[str]) -> bool:
        """Increment the unread counters of the given participants.

        Returns:
            True if the conversation exists
        """
        ...

    async def reset_unread(self, conversation_id: str, participant_id: str) -> bool:
        """Reset one participant's unread counter to zero.

        Returns:
            True if the conversation exists
        """
        ...
