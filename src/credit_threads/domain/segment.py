"""Segment value type for credit_threads.

A segment is a compressed, chronologically ordered batch of messages.
Segments are immutable values: appending to the open segment produces a
new Segment that replaces the previous one wholesale, so a reader holding
an older snapshot never observes a half-written payload.
"""

from dataclasses import dataclass, field
from datetime import datetime

from credit_threads.utils.timestamps import utcnow

__all__ = [
    "Segment",
    "SegmentFingerprint",
]


@dataclass(frozen=True)
class SegmentFingerprint:
    """Compare-and-swap guard for the open segment.

    A conditional update only applies if the stored segment still has
    exactly these values.
    """

    segment_id: str
    message_count: int
    last_message_at: datetime
    checksum: str


@dataclass(frozen=True)
class Segment:
    """Compressed batch of messages within a conversation."""

    segment_id: str
    data: bytes
    message_count: int
    first_message_at: datetime
    last_message_at: datetime
    checksum: str
    created_at: datetime = field(default_factory=utcnow)

    @property
    def fingerprint(self) -> SegmentFingerprint:
        return SegmentFingerprint(
            segment_id=self.segment_id,
            message_count=self.message_count,
            last_message_at=self.last_message_at,
            checksum=self.checksum,
        )

    @property
    def compressed_size(self) -> int:
        return len(self.data)
