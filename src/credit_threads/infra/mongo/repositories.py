"""MongoDB repositories for credit_threads.

This module provides the MongoDB implementation of the conversation store.
A conversation is one document; its segments are an embedded array.
Every segment commit is a single ``find_one_and_update`` whose filter
carries the optimistic guard, so it applies atomically or not at all.
"""

from typing import Any, Self

from credit_threads.config import MongoSettings
from credit_threads.domain.conversation import Conversation
from credit_threads.domain.segment import Segment, SegmentFingerprint
from credit_threads.infra.mongo.client import MongoClient
from credit_threads.interfaces.store import ConversationStoreInterface
from credit_threads.logging import get_logger
from credit_threads.models.conversation import ConversationStatus, LastMessageDTO
from credit_threads.models.message import MessageKind
from credit_threads.utils.lazy_import import lazy_import
from credit_threads.utils.timestamps import normalize_timestamp, utcnow

__all__ = [
    "MongoConversationRepository",
]

logger = get_logger(__name__)

get_duplicate_key_error = lazy_import("pymongo.errors", "DuplicateKeyError")
get_return_document = lazy_import("pymongo", "ReturnDocument")

# Segment payloads are only loaded when asked for
_SUMMARY_PROJECTION = {"_id": 0, "segments": 0}
_FULL_PROJECTION = {"_id": 0}


class MongoConversationRepository(ConversationStoreInterface):
    """MongoDB implementation of ConversationStoreInterface."""

    config_class = MongoSettings

    def __init__(self, client: MongoClient) -> None:
        """Initialize repository with MongoDB client.

        Args:
            client: Connected MongoClient instance
        """
        self._client = client
        self._owns_client = False

    @classmethod
    async def from_config(cls, config: MongoSettings) -> Self:
        """Factory method for ConversationLog instantiation.

        Creates a MongoClient, connects, creates indexes, and returns repository.

        Args:
            config: MongoDB settings

        Returns:
            Connected MongoConversationRepository instance
        """
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with MongoDB settings

        Returns:
            Connected MongoConversationRepository instance
        """
        settings = MongoSettings(**config)
        return await cls.from_config(settings)

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    # Conversation operations
    async def create_conversation(self, conversation: Conversation) -> Conversation:
        """Insert a conversation, or return the existing one with the same ID."""
        DuplicateKeyError = get_duplicate_key_error()  # noqa: N806

        doc = self._conversation_to_doc(conversation)
        try:
            await self._client.conversations.insert_one(doc)
        except DuplicateKeyError:
            existing = await self.get_conversation(conversation.id, include_segments=False)
            if existing is not None:
                return existing
            raise

        logger.info(
            "conversation_created",
            conversation_id=conversation.id,
            case_id=conversation.case_id,
            participants=len(conversation.participants),
        )
        return conversation

    async def get_conversation(
        self,
        conversation_id: str,
        *,
        include_segments: bool = True,
    ) -> Conversation | None:
        """Get a conversation snapshot by ID."""
        projection = _FULL_PROJECTION if include_segments else _SUMMARY_PROJECTION
        doc = await self._client.conversations.find_one(
            {"conversation_id": conversation_id},
            projection,
        )
        return self._doc_to_conversation(doc) if doc else None

    async def list_conversations(
        self,
        participant_id: str | None,
        skip: int,
        limit: int,
    ) -> tuple[int, list[Conversation]]:
        """List conversations by most recent activity."""
        filter_: dict[str, Any] = {}
        if participant_id is not None:
            filter_["participants"] = participant_id

        total = await self._client.conversations.count_documents(filter_)
        cursor = (
            self._client.conversations.find(filter_, _SUMMARY_PROJECTION)
            .sort("updated_at", -1)
            .skip(skip)
            .limit(limit)
        )
        return total, [self._doc_to_conversation(doc) async for doc in cursor]

    # Segment commits
    async def insert_first_segment(
        self,
        conversation_id: str,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Push the first segment if the segment array is still empty."""
        return await self._commit(
            {"conversation_id": conversation_id, "segments": {"$size": 0}},
            {
                "$push": {"segments": self._segment_to_doc(segment)},
                "$inc": {"total_messages": 1, "segment_count": 1},
                "$set": self._last_message_fields(last_message),
            },
        )

    async def push_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        previous_index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Push a new segment if the previous one is still last."""
        return await self._commit(
            {
                "conversation_id": conversation_id,
                "segments": {"$size": previous_index + 1},
                f"segments.{previous_index}.segment_id": previous.segment_id,
            },
            {
                "$push": {"segments": self._segment_to_doc(segment)},
                "$inc": {"total_messages": 1, "segment_count": 1},
                "$set": self._last_message_fields(last_message),
            },
        )

    async def replace_last_segment(
        self,
        conversation_id: str,
        previous: SegmentFingerprint,
        index: int,
        segment: Segment,
        last_message: LastMessageDTO,
    ) -> Conversation | None:
        """Overwrite the open segment if its fingerprint is unchanged."""
        prefix = f"segments.{index}"
        return await self._commit(
            {
                "conversation_id": conversation_id,
                "segments": {"$size": index + 1},
                f"{prefix}.segment_id": previous.segment_id,
                f"{prefix}.message_count": previous.message_count,
                f"{prefix}.last_message_at": previous.last_message_at,
                f"{prefix}.checksum": previous.checksum,
            },
            {
                "$set": {
                    prefix: self._segment_to_doc(segment),
                    **self._last_message_fields(last_message),
                },
                "$inc": {"total_messages": 1},
            },
        )

    async def _commit(
        self,
        filter_: dict[str, Any],
        update: dict[str, Any],
    ) -> Conversation | None:
        """Run one guarded update, returning the post-update summary or None."""
        ReturnDocument = get_return_document()  # noqa: N806

        doc = await self._client.conversations.find_one_and_update(
            filter_,
            update,
            projection=_SUMMARY_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return self._doc_to_conversation(doc) if doc else None

    # Case metadata operations
    async def set_status(self, conversation_id: str, status: ConversationStatus) -> bool:
        """Set the lifecycle status."""
        result = await self._client.conversations.update_one(
            {"conversation_id": conversation_id},
            {"$set": {"status": status.value, "updated_at": utcnow()}},
        )
        return result.matched_count > 0

    async def increment_unread(self, conversation_id: str, participant_ids: list[str]) -> bool:
        """Increment unread counters for the given participants."""
        if not participant_ids:
            count = await self._client.conversations.count_documents(
                {"conversation_id": conversation_id}, limit=1
            )
            return count > 0

        result = await self._client.conversations.update_one(
            {"conversation_id": conversation_id},
            {"$inc": {f"unread_counts.{pid}": 1 for pid in participant_ids}},
        )
        return result.matched_count > 0

    async def reset_unread(self, conversation_id: str, participant_id: str) -> bool:
        """Reset one participant's unread counter."""
        result = await self._client.conversations.update_one(
            {"conversation_id": conversation_id},
            {"$set": {f"unread_counts.{participant_id}": 0}},
        )
        return result.matched_count > 0

    # Document conversion helpers
    @staticmethod
    def _last_message_fields(last_message: LastMessageDTO) -> dict[str, Any]:
        return {
            "last_message": {
                "text": last_message.text,
                "sender": last_message.sender,
                "created_at": last_message.created_at,
                "kind": last_message.kind.value,
            },
            "updated_at": utcnow(),
        }

    @staticmethod
    def _segment_to_doc(segment: Segment) -> dict[str, Any]:
        return {
            "segment_id": segment.segment_id,
            "data": segment.data,
            "message_count": segment.message_count,
            "first_message_at": segment.first_message_at,
            "last_message_at": segment.last_message_at,
            "checksum": segment.checksum,
            "created_at": segment.created_at,
        }

    @staticmethod
    def _doc_to_segment(doc: dict[str, Any]) -> Segment:
        return Segment(
            segment_id=doc["segment_id"],
            data=bytes(doc["data"]),
            message_count=doc["message_count"],
            first_message_at=normalize_timestamp(doc["first_message_at"]),
            last_message_at=normalize_timestamp(doc["last_message_at"]),
            checksum=doc["checksum"],
            created_at=normalize_timestamp(doc["created_at"]),
        )

    @staticmethod
    def _conversation_to_doc(conversation: Conversation) -> dict[str, Any]:
        return {
            "conversation_id": conversation.id,
            "case_id": conversation.case_id,
            "participants": list(conversation.participants),
            "created_by": conversation.created_by,
            "status": conversation.status.value,
            "segments": [],
            "segment_count": 0,
            "total_messages": 0,
            "last_message": None,
            "unread_counts": {},
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
            "schema_version": 1,
        }

    @classmethod
    def _doc_to_conversation(cls, doc: dict[str, Any]) -> Conversation:
        segments = [cls._doc_to_segment(s) for s in doc.get("segments", [])]
        last = doc.get("last_message")
        return Conversation(
            id=doc["conversation_id"],
            case_id=doc["case_id"],
            created_by=doc["created_by"],
            participants=list(doc.get("participants", [])),
            status=ConversationStatus(doc.get("status", ConversationStatus.OPEN.value)),
            segments=segments,
            segment_count=doc.get("segment_count", len(segments)),
            total_messages=doc.get("total_messages", 0),
            last_message=(
                LastMessageDTO(
                    text=last.get("text", ""),
                    sender=last["sender"],
                    created_at=normalize_timestamp(last["created_at"]),
                    kind=MessageKind(last["kind"]),
                )
                if last
                else None
            ),
            unread_counts=dict(doc.get("unread_counts", {})),
            created_at=normalize_timestamp(doc["created_at"]),
            updated_at=normalize_timestamp(doc["updated_at"]),
        )
