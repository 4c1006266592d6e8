"""credit_threads - Conversation message log for faculty credit cases.

This package provides tools for:
- Opening one conversation per credit case and participant set
- Appending messages into compressed, checksummed segments
- Lock-free concurrent appends with bounded optimistic retries
- Reading history newest-first in cursor-paginated pages
- Tracking case status and per-participant unread counters

Example usage:
    from credit_threads import (
        ConversationLog,
        MongoConversationRepository,
        SenderSnapshot,
    )

    # Simple usage - config loaded from .env automatically
    async with ConversationLog(store_class=MongoConversationRepository) as log:
        convo = await log.create_conversation("case-42", ["faculty-7"], "issuer-3")
        await log.send_message(
            convo.id,
            "issuer-3",
            SenderSnapshot(name="R. Iyer", department="Physics"),
            "Please upload the workshop certificate.",
            kind="negative",
        )
        messages = await log.read(convo.id, limit=50)
"""

__version__ = "0.1.0"

# Facade
from credit_threads.conversation_log import ConversationLog

# Errors
from credit_threads.exceptions import (
    AppendConflict,
    ConversationLogError,
    ConversationNotFound,
    CorruptSegment,
    ThresholdMiscalculation,
)

# Implementations
from credit_threads.infra.memory.store import InMemoryConversationStore
from credit_threads.infra.mongo.repositories import MongoConversationRepository

# Interfaces
from credit_threads.interfaces.cache import SegmentCacheInterface
from credit_threads.interfaces.store import ConversationStoreInterface

# Models
from credit_threads.models.conversation import (
    AppendResult,
    ConversationDTO,
    ConversationPage,
    ConversationStatus,
    LastMessageDTO,
)
from credit_threads.models.message import (
    MessageContent,
    MessageDTO,
    MessageKind,
    SenderSnapshot,
)

__all__ = [  # noqa: RUF022
    # Facade
    "ConversationLog",
    # Implementations
    "MongoConversationRepository",
    "InMemoryConversationStore",
    # Interfaces
    "ConversationStoreInterface",
    "SegmentCacheInterface",
    # Models
    "AppendResult",
    "ConversationDTO",
    "ConversationPage",
    "ConversationStatus",
    "LastMessageDTO",
    "MessageContent",
    "MessageDTO",
    "MessageKind",
    "SenderSnapshot",
    # Errors
    "AppendConflict",
    "ConversationLogError",
    "ConversationNotFound",
    "CorruptSegment",
    "ThresholdMiscalculation",
]
