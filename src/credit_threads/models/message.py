"""Message models for credit_threads.

Messages never exist as standalone records: they live inside the
compressed payload of a conversation segment. These models define the
canonical shape that is serialized into that payload.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from credit_threads.utils.timestamps import normalize_timestamp

__all__ = [
    "MessageContent",
    "MessageDTO",
    "MessageKind",
    "SenderSnapshot",
]


class MessageKind(StrEnum):
    """Provenance of a message within a credit case conversation."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    SYSTEM = "system"


class SenderSnapshot(BaseModel, frozen=True):
    """Display fields of the sender, captured when the message is sent.

    The snapshot is never re-resolved against the user record, so history
    keeps showing what participants saw at the time.
    """

    name: str = ""
    faculty_id: str | None = None
    college: str | None = None
    department: str | None = None


class MessageContent(BaseModel, frozen=True):
    """Message body: text plus free-form metadata."""

    text: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)


class MessageDTO(BaseModel, frozen=True):
    """A single conversation message.

    Attributes:
        id: Unique message ID, assigned at append time when left empty
        sender: ID of the authoring user
        sender_snapshot: Denormalized sender display fields
        kind: Message provenance tag
        content: Text and metadata
        created_at: UTC timestamp, millisecond resolution
        schema_version: Schema version for forward compatibility
    """

    id: str | None = Field(default=None, description="Assigned at append time")
    sender: str = Field(description="Authoring user ID")
    sender_snapshot: SenderSnapshot = Field(default_factory=SenderSnapshot)
    kind: MessageKind = Field(default=MessageKind.SYSTEM)
    content: MessageContent = Field(default_factory=MessageContent)
    created_at: datetime
    schema_version: int = Field(default=1)

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return normalize_timestamp(value)

    @property
    def text(self) -> str:
        """Shortcut for the message text."""
        return self.content.text
