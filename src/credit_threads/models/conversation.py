"""Conversation models for credit_threads.

These models represent conversation metadata as exposed to callers.
Segment payloads never leave the store through these models.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from credit_threads.models.message import MessageDTO, MessageKind

__all__ = [
    "AppendResult",
    "ConversationDTO",
    "ConversationPage",
    "ConversationStatus",
    "LastMessageDTO",
]


class ConversationStatus(StrEnum):
    """Lifecycle status of a credit case conversation."""

    OPEN = "open"
    RESOLVED = "resolved"
    ARCHIVED = "archived"


class LastMessageDTO(BaseModel, frozen=True):
    """Denormalized summary of the most recently committed message."""

    text: str = ""
    sender: str
    created_at: datetime
    kind: MessageKind

    @classmethod
    def from_message(cls, message: MessageDTO) -> "LastMessageDTO":
        return cls(
            text=message.content.text,
            sender=message.sender,
            created_at=message.created_at,
            kind=message.kind,
        )


class ConversationDTO(BaseModel, frozen=True):
    """Public conversation data transfer object.

    Attributes:
        id: Conversation ID
        case_id: ID of the credit case the conversation is attached to
        participants: IDs of participating users
        created_by: ID of the user who opened the conversation
        status: Lifecycle status
        total_messages: Number of committed messages across all segments
        segment_count: Number of compressed segments
        last_message: Summary of the latest message, None while empty
        unread_counts: Unread message count per participant ID
        created_at: Creation timestamp
        updated_at: Last modification timestamp
        schema_version: Schema version for forward compatibility
    """

    id: str
    case_id: str
    participants: list[str] = Field(default_factory=list)
    created_by: str
    status: ConversationStatus = Field(default=ConversationStatus.OPEN)
    total_messages: int = Field(default=0, ge=0)
    segment_count: int = Field(default=0, ge=0)
    last_message: LastMessageDTO | None = None
    unread_counts: dict[str, int] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    schema_version: int = Field(default=1)


class ConversationPage(BaseModel, frozen=True):
    """One page of a participant's conversation listing."""

    total: int
    page: int
    per_page: int
    conversations: list[ConversationDTO] = Field(default_factory=list)


class AppendResult(BaseModel, frozen=True):
    """Outcome of a committed append.

    Attributes:
        message: The message as stored, with its assigned ID
        total_messages: Conversation total after this commit
        last_message: Conversation summary after this commit
        segment_count: Number of segments after this commit
        attempts: Optimistic attempts used, including the successful one
    """

    message: MessageDTO
    total_messages: int
    last_message: LastMessageDTO
    segment_count: int
    attempts: int = 1
