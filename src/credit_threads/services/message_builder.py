"""Message builder service for credit_threads.

This module provides the service for building MessageDTOs from the
fields a send request carries.
"""

from datetime import datetime
from typing import Any

from credit_threads.logging import get_logger
from credit_threads.models.message import (
    MessageContent,
    MessageDTO,
    MessageKind,
    SenderSnapshot,
)
from credit_threads.utils.timestamps import utcnow

__all__ = [
    "MessageBuilder",
]

logger = get_logger(__name__)


class MessageBuilder:
    """Service for building MessageDTOs from send requests.

    The builder stamps the creation time and freezes the sender snapshot.
    It does not assign message IDs: that happens at append time.

    Example:
        builder = MessageBuilder()
        message = builder.build(
            sender_id=user_id,
            sender_snapshot=SenderSnapshot(name="A. Rao", faculty_id="F-102"),
            text="Please attach the certificate.",
            kind="negative",
        )
    """

    def build(
        self,
        sender_id: str,
        sender_snapshot: SenderSnapshot,
        text: str,
        kind: MessageKind | str = MessageKind.SYSTEM,
        meta: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> MessageDTO:
        """Build a message for a user send request.

        Args:
            sender_id: ID of the sending user
            sender_snapshot: Sender display fields at send time
            text: Message text, must not be blank
            kind: Message kind (positive, negative or system)
            meta: Free-form metadata
            created_at: Creation time (default: now)

        Returns:
            MessageDTO without ID

        Raises:
            ValueError: If text is blank, sender_id is empty or kind is unknown
        """
        if not sender_id:
            raise ValueError("sender_id is required")
        if not text or not text.strip():
            raise ValueError("Message text must not be blank")

        message = MessageDTO(
            sender=sender_id,
            sender_snapshot=sender_snapshot,
            kind=MessageKind(kind),
            content=MessageContent(text=text, meta=dict(meta or {})),
            created_at=created_at or utcnow(),
        )

        logger.debug(
            "message_built",
            sender=sender_id,
            kind=message.kind.value,
            text_length=len(text),
        )
        return message
