"""Exceptions raised by the conversation message log.

Every error carries a human readable message plus a ``details`` dict
suitable for structured logging. Only ``AppendConflict`` is transient.
"""

from typing import Any

__all__ = [
    "AppendConflict",
    "ConversationLogError",
    "ConversationNotFound",
    "CorruptSegment",
    "ThresholdMiscalculation",
]


class ConversationLogError(Exception):
    """Base exception for all conversation log errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConversationNotFound(ConversationLogError):
    """Raised when a conversation id does not resolve. Never retried."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(
            f"Conversation not found: {conversation_id}",
            {"conversation_id": conversation_id},
        )
        self.conversation_id = conversation_id


class AppendConflict(ConversationLogError):
    """Raised when every optimistic append attempt lost a race.

    Safe to resubmit: none of the rejected attempts left any state behind.
    """

    retryable = True

    def __init__(self, conversation_id: str, attempts: int) -> None:
        super().__init__(
            f"Failed to append to conversation {conversation_id} after {attempts} attempts",
            {"conversation_id": conversation_id, "attempts": attempts},
        )
        self.conversation_id = conversation_id
        self.attempts = attempts


class CorruptSegment(ConversationLogError):
    """Raised when a segment cannot be decoded or fails verification."""

    def __init__(
        self,
        reason: str,
        segment_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason}
        if segment_id:
            details["segment_id"] = segment_id
        if cause:
            details["cause"] = str(cause)
        message = f"Corrupt segment: {reason}"
        if segment_id:
            message += f" (segment {segment_id})"
        super().__init__(message, details)
        self.reason = reason
        self.segment_id = segment_id
        self.cause = cause


class ThresholdMiscalculation(CorruptSegment):
    """Cached counters or timestamps disagree with the decoded content."""

    def __init__(
        self,
        field: str,
        expected: Any,
        actual: Any,
        segment_id: str | None = None,
    ) -> None:
        super().__init__(
            f"{field} mismatch (stored {expected!r}, decoded {actual!r})",
            segment_id=segment_id,
        )
        self.details.update({"field": field, "expected": str(expected), "actual": str(actual)})
        self.field = field
        self.expected = expected
        self.actual = actual
