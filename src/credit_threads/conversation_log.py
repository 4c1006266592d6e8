"""ConversationLog facade for credit case conversations.

This module provides the main entry point for the credit_threads package,
wiring the store, the optional segment cache and the append/read services.
"""

from datetime import datetime
from typing import Any

from credit_threads.config import CreditThreadsConfig
from credit_threads.domain.conversation import Conversation
from credit_threads.exceptions import ConversationNotFound
from credit_threads.infra.redis.cache import SegmentCache
from credit_threads.infra.redis.client import RedisClient
from credit_threads.interfaces.store import ConversationStoreInterface
from credit_threads.logging import bind_conversation, get_logger
from credit_threads.models.conversation import (
    AppendResult,
    ConversationDTO,
    ConversationPage,
    ConversationStatus,
)
from credit_threads.models.message import MessageDTO, MessageKind, SenderSnapshot
from credit_threads.services.append_coordinator import AppendCoordinator
from credit_threads.services.codec import MessageCodec
from credit_threads.services.message_builder import MessageBuilder
from credit_threads.services.paginated_reader import PaginatedReader

__all__ = ["ConversationLog"]

logger = get_logger(__name__)

MAX_PER_PAGE = 100


class ConversationLog:
    """Conversation message log for credit cases.

    Accepts the store implementation class. Config is loaded from .env
    automatically. For custom stores, set config_class = None and pass
    store_custom_config.

    Callers are expected to have authorized the user for the conversation
    before invoking any method here.

    Example:
        async with ConversationLog(store_class=MongoConversationRepository) as log:
            convo = await log.create_conversation(case_id, [faculty_id], issuer_id)
            await log.send_message(convo.id, issuer_id, snapshot, "Approved", kind="positive")
            page = await log.read(convo.id, limit=50)
    """

    def __init__(
        self,
        store_class: type[ConversationStoreInterface],
        *,
        store_custom_config: dict[str, Any] | None = None,
        config: CreditThreadsConfig | None = None,
    ) -> None:
        """Initialize ConversationLog with the store implementation class.

        Args:
            store_class: Store implementation class
            store_custom_config: Custom config dict if store_class.config_class is None
            config: Settings override (default: loaded from environment / .env)
        """
        self._config = config or CreditThreadsConfig()

        self._store_class = store_class
        self._store_custom_config = store_custom_config

        # Instances (created on connect)
        self._store: ConversationStoreInterface | None = None
        self._redis: RedisClient | None = None

        # Services (wired on connect)
        self._codec = MessageCodec()
        self._message_builder = MessageBuilder()
        self._coordinator: AppendCoordinator | None = None
        self._reader: PaginatedReader | None = None

        self._connected = False

    async def _instantiate_class(
        self,
        cls: type,
        custom_config: dict[str, Any] | None,
    ) -> Any:
        """Instantiate an implementation class.

        If cls.config_class is set, instantiate config (loads from .env).
        If cls.config_class is None, use custom_config dict.
        """
        config_class = getattr(cls, "config_class", None)

        if config_class is None:
            if custom_config is None:
                raise ValueError(
                    f"{cls.__name__} has config_class=None but no custom_config provided"
                )
            return await cls.from_dict(custom_config)
        else:
            config = config_class()
            return await cls.from_config(config)

    async def _connect(self) -> None:
        """Initialize connections and services."""
        if self._connected:
            return

        self._store = await self._instantiate_class(self._store_class, self._store_custom_config)

        cache: SegmentCache | None = None
        if self._config.redis_enabled:
            self._redis = RedisClient(self._config.redis)
            if await self._redis.connect():
                cache = SegmentCache(self._redis, ttl=self._config.redis.segment_ttl_seconds)

        log_settings = self._config.log
        self._coordinator = AppendCoordinator(
            self._store,
            self._codec,
            segment_message_limit=log_settings.segment_message_limit,
            segment_byte_threshold=log_settings.segment_byte_threshold,
            max_attempts=log_settings.max_append_attempts,
        )
        self._reader = PaginatedReader(
            self._store,
            self._codec,
            cache=cache,
            default_limit=log_settings.default_page_limit,
            max_limit=log_settings.max_page_limit,
        )

        self._connected = True
        logger.info("conversation_log_connected", segment_cache=cache is not None)

    async def _disconnect(self) -> None:
        """Close all connections."""
        if self._store and hasattr(self._store, "close"):
            await self._store.close()
        if self._redis:
            await self._redis.disconnect()

        self._connected = False
        logger.info("conversation_log_disconnected")

    async def __aenter__(self) -> "ConversationLog":
        """Async context manager entry - connects automatically."""
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit - disconnects automatically."""
        await self._disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise RuntimeError(
                "ConversationLog not connected. Use 'async with ConversationLog(...) as log:'"
            )

    # === CONVERSATIONS ===

    async def create_conversation(
        self,
        case_id: str,
        participant_ids: list[str],
        created_by: str,
    ) -> ConversationDTO:
        """Create the conversation for a case and participant set.

        The creator is always added as a participant. If a conversation for
        the same case and the same participant set already exists, it is
        returned instead of creating a second one.
        """
        self._ensure_connected()
        assert self._store is not None

        if not case_id:
            raise ValueError("case_id is required")
        if not created_by:
            raise ValueError("created_by is required")

        conversation = Conversation.new(case_id, participant_ids, created_by)
        stored = await self._store.create_conversation(conversation)
        return stored.to_dto()

    async def get_conversation(self, conversation_id: str) -> ConversationDTO:
        """Get conversation metadata and counters (no message payloads)."""
        self._ensure_connected()
        assert self._store is not None

        conversation = await self._store.get_conversation(conversation_id, include_segments=False)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation.to_dto()

    async def list_conversations(
        self,
        participant_id: str | None = None,
        page: int = 0,
        per_page: int = 20,
    ) -> ConversationPage:
        """List conversations by most recent activity.

        Args:
            participant_id: Only conversations with this participant; None lists all
            page: Zero-based page number
            per_page: Page size, clamped to [1, 100]
        """
        self._ensure_connected()
        assert self._store is not None

        page = max(0, page)
        per_page = max(1, min(per_page, MAX_PER_PAGE))
        total, conversations = await self._store.list_conversations(
            participant_id, skip=page * per_page, limit=per_page
        )
        return ConversationPage(
            total=total,
            page=page,
            per_page=per_page,
            conversations=[c.to_dto() for c in conversations],
        )

    async def set_status(self, conversation_id: str, status: ConversationStatus | str) -> None:
        """Move a conversation to open, resolved or archived."""
        self._ensure_connected()
        assert self._store is not None

        status = ConversationStatus(status)
        if not await self._store.set_status(conversation_id, status):
            raise ConversationNotFound(conversation_id)
        logger.info("conversation_status_changed", conversation_id=conversation_id, status=status)

    async def mark_read(self, conversation_id: str, participant_id: str) -> None:
        """Reset a participant's unread counter."""
        self._ensure_connected()
        assert self._store is not None

        if not await self._store.reset_unread(conversation_id, participant_id):
            raise ConversationNotFound(conversation_id)

    # === MESSAGES ===

    async def append(self, conversation_id: str, message: MessageDTO) -> AppendResult:
        """Append a fully formed message to a conversation."""
        self._ensure_connected()
        assert self._coordinator is not None
        with bind_conversation(conversation_id, operation="append"):
            return await self._coordinator.append(conversation_id, message)

    async def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        sender_snapshot: SenderSnapshot,
        text: str,
        kind: MessageKind | str = MessageKind.SYSTEM,
        meta: dict[str, Any] | None = None,
    ) -> AppendResult:
        """Build a message from a send request, append it and bump unread counters.

        Every participant other than the sender gets their unread counter
        incremented once the message is committed.
        """
        self._ensure_connected()
        assert self._store is not None
        assert self._coordinator is not None

        message = self._message_builder.build(
            sender_id=sender_id,
            sender_snapshot=sender_snapshot,
            text=text,
            kind=kind,
            meta=meta,
        )
        with bind_conversation(conversation_id, operation="send", sender=sender_id):
            result = await self._coordinator.append(conversation_id, message)

            conversation = await self._store.get_conversation(
                conversation_id, include_segments=False
            )
            if conversation is not None:
                recipients = [p for p in conversation.participants if p != sender_id]
                await self._store.increment_unread(conversation_id, recipients)

        return result

    async def read(
        self,
        conversation_id: str,
        limit: int | None = None,
        before: datetime | None = None,
    ) -> list[MessageDTO]:
        """Read a page of messages strictly before a cursor, in chronological order."""
        self._ensure_connected()
        assert self._reader is not None
        with bind_conversation(conversation_id, operation="read"):
            return await self._reader.read(conversation_id, limit=limit, before=before)
