"""In-memory conversation store for credit_threads.

Process-local implementation of ConversationStoreInterface with the same
conditional-commit semantics as the MongoDB repository. Useful for tests
and single-process tools. Each method body runs without awaiting, so under
asyncio every commit is atomic with respect to other coroutines.
"""

from dataclasses import replace
from typing import Any, Self

from credit_threads.domain.conversation import Conversation
from credit_threads.domain.segment import Segment, SegmentFingerprint
from credit_threads.interfaces.store import ConversationStoreInterface
from credit_threads.logging import get_logger
from credit_threads.models.conversation import ConversationStatus, LastMessageDTO
from credit_threads.utils.timestamps import utcnow

__all__ = [
    "InMemoryConversationStore",
]

logger = get_logger(__name__)


class InMemoryConversationStore(ConversationStoreInterface):
    """Dict-backed conversation store.

    Snapshots handed out are copies; segments themselves are immutable
    values and are shared.
    """

    config_class = None

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for ConversationLog instantiation (config is unused)."""
        return cls()

    async def close(self) -> None:
        self._conversations.clear()

    @staticmethod
    def _snapshot(conversation: Conversation, include_segments: bool = True) -> Conversation:
        return replace(
            conversation,
            participants=list(conversation.participants),
            segments=list(conversation.segments) if include_segments else [],
            unread_counts=dict(conversation.unread_counts),
        )

    # Conversation operations
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        existing = self._conversations.get(conversation.id)
        if existing is not None:
            return self._snapshot(existing, include_segments=False)

        stored = replace(
            conversation,
            segments=[],
            segment_count=0,
            total_messages=0,
            last_message=None,
            unread_counts={},
        )
        self._conversations[conversation.id] = stored
        logger.info(
            "conversation_created",
            conversation_id=conversation.id,
            case_id=conversation.case_id,
            participants=len(conversation.participants),
        )
        return self._snapshot(stored, include_segments=False)

    async def get_conversation(
        self,
        conversation_id: str,
        *,
        include_segments: bool = True,
    ) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        return self._snapshot(conversation, include_segments)

    async def list_conversations(
        self,
        participant_id: str | None,
        skip: int,
        limit: int,
    ) -> tuple[int, list[Conversation]]:
        matching = [
            c
            for c in self._conversations.values()
            if participant_id is None or participant_id in c.participants
        ]
        matching.sort(key=lambda c: c.updated_at, reverse=True)
        page = matching[skip : skip + limit]
        return len(matching), [self._snapshot(c, include_segments=False) for c in page]

    # Segment commits
    async def insert_first_segment(
        self,
        conversation_id: str,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or conversation.segments:
            return None
        return self._apply(conversation, [segment], last_message)

    async def push_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        previous_index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or len(conversation.segments) != previous_index + 1:
            return None
        if conversation.segments[previous_index].segment_id != previous.segment_id:
            return None
        return self._apply(conversation, [*conversation.segments, segment], last_message)

    async def replace_last_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or len(conversation.segments) != index + 1:
            return None
        if conversation.segments[index].fingerprint != previous:
            return None
        return self._apply(conversation, [*conversation.segments[:index], segment], last_message)

    def _apply(
        self,
        conversation: Conversation,
        segments: list[Segment],
        last_message: LastMessageDTO,
    ) -> Conversation:
        updated = replace(
            conversation,
            segments=segments,
            segment_count=len(segments),
            total_messages=conversation.total_messages + 1,
            last_message=last_message,
            updated_at=utcnow(),
        )
        self._conversations[conversation.id] = updated
        return self._snapshot(updated, include_segments=False)

    # Case metadata operations
    async def set_status(self, conversation_id: str, status: ConversationStatus) -> bool:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return False
        self._conversations[conversation_id] = replace(
            conversation, status=status, updated_at=utcnow()
        )
        return True

    async def increment_unread(self, conversation_id: str, participant_ids: list[str]) -> bool:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return False
        counts = dict(conversation.unread_counts)
        for pid in participant_ids:
            counts[pid] = counts.get(pid, 0) + 1
        self._conversations[conversation_id] = replace(conversation, unread_counts=counts)
        return True

    async def reset_unread(self, conversation_id: str, participant_id: str) -> bool:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return False
        counts = dict(conversation.unread_counts)
        counts[participant_id] = 0
        self._conversations[conversation_id] = replace(conversation, unread_counts=counts)
        return True
