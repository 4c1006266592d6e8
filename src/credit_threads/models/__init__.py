"""Public DTO models for credit_threads.

This module exports all public data transfer objects.
"""

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

__all__ = [
    "AppendResult",
    "ConversationDTO",
    "ConversationPage",
    "ConversationStatus",
    "LastMessageDTO",
    "MessageContent",
    "MessageDTO",
    "MessageKind",
    "SenderSnapshot",
]
