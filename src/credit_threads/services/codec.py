"""Segment codec for credit_threads.

This module turns ordered message batches into compressed segment
payloads and back, and verifies stored segments against their
bookkeeping fields before any decoded message is trusted.
"""

import gzip
import zlib
from collections.abc import Sequence
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from credit_threads.domain.segment import Segment
from credit_threads.exceptions import CorruptSegment, ThresholdMiscalculation
from credit_threads.logging import get_logger
from credit_threads.models.message import MessageDTO
from credit_threads.utils.hashing import generate_segment_id, hash_bytes
from credit_threads.utils.timestamps import utcnow

__all__ = [
    "MessageCodec",
]

logger = get_logger(__name__)

_MESSAGES = TypeAdapter(list[MessageDTO])
_MESSAGE = TypeAdapter(MessageDTO)


class MessageCodec:
    """Compress, decompress and checksum message batches.

    The canonical encoding is compact UTF-8 JSON of the message list as
    produced by pydantic, compressed with gzip. The gzip header mtime is
    pinned so the same batch always compresses to the same bytes within
    one run, which keeps checksums stable.

    Example:
        codec = MessageCodec()
        segment = codec.build_segment([message])
        messages = codec.open_segment(segment)
    """

    def __init__(self, compression_level: int = 6) -> None:
        """Initialize codec.

        Args:
            compression_level: gzip level, 1 (fast) to 9 (small)
        """
        self._compression_level = compression_level

    @staticmethod
    def encode(messages: Sequence[MessageDTO]) -> bytes:
        """Serialize messages to canonical uncompressed JSON bytes."""
        return _MESSAGES.dump_json(list(messages))

    def encoded_size(self, messages: Sequence[MessageDTO]) -> int:
        """Size of the uncompressed JSON encoding, in bytes."""
        return len(self.encode(messages))

    @staticmethod
    def encoded_message_size(message: MessageDTO) -> int:
        """Size of one message's JSON encoding, in bytes."""
        return len(_MESSAGE.dump_json(message))

    def compress(self, messages: Sequence[MessageDTO]) -> bytes:
        """Serialize and gzip an ordered message batch."""
        return gzip.compress(
            self.encode(messages),
            compresslevel=self._compression_level,
            mtime=0,
        )

    def decompress(self, data: bytes, segment_id: str | None = None) -> list[MessageDTO]:
        """Inverse of compress.

        Raises:
            CorruptSegment: If the payload is not valid gzip or not a
                valid message list
        """
        try:
            raw = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise CorruptSegment("payload is not valid gzip", segment_id, e) from e

        try:
            return _MESSAGES.validate_json(raw)
        except ValidationError as e:
            raise CorruptSegment("payload is not a valid message list", segment_id, e) from e

    @staticmethod
    def checksum(data: bytes) -> str:
        """SHA-256 hex digest of compressed bytes."""
        return hash_bytes(data)

    def build_segment(
        self,
        messages: Sequence[MessageDTO],
        segment_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Segment:
        """Build a segment value holding the given non-empty batch.

        Args:
            messages: Chronologically ordered messages
            segment_id: Keep an existing identity (extending the open
                segment); a new one is generated when omitted
            created_at: Keep the creation time of the segment being extended
        """
        if not messages:
            raise ValueError("A segment must hold at least one message")

        data = self.compress(messages)
        return Segment(
            segment_id=segment_id or generate_segment_id(),
            data=data,
            message_count=len(messages),
            first_message_at=messages[0].created_at,
            last_message_at=messages[-1].created_at,
            checksum=self.checksum(data),
            created_at=created_at or utcnow(),
        )

    def verify_checksum(self, segment: Segment) -> None:
        """Raise CorruptSegment if the payload does not match its checksum."""
        actual = self.checksum(segment.data)
        if actual != segment.checksum:
            logger.error(
                "segment_checksum_mismatch",
                segment_id=segment.segment_id,
                expected=segment.checksum,
                actual=actual,
            )
            raise CorruptSegment("checksum mismatch", segment.segment_id)

    def open_segment(self, segment: Segment) -> list[MessageDTO]:
        """Decode a stored segment and verify its bookkeeping.

        Raises:
            CorruptSegment: On checksum or decode failure
            ThresholdMiscalculation: If count or bounding timestamps
                disagree with the decoded messages
        """
        self.verify_checksum(segment)
        messages = self.decompress(segment.data, segment.segment_id)
        self.verify_contents(segment, messages)
        return messages

    @staticmethod
    def verify_contents(segment: Segment, messages: Sequence[MessageDTO]) -> None:
        """Check count and timestamps of a segment against decoded messages."""
        if len(messages) != segment.message_count:
            raise ThresholdMiscalculation(
                "message_count", segment.message_count, len(messages), segment.segment_id
            )
        if not messages:
            raise CorruptSegment("segment holds no messages", segment.segment_id)
        if messages[0].created_at != segment.first_message_at:
            raise ThresholdMiscalculation(
                "first_message_at",
                segment.first_message_at,
                messages[0].created_at,
                segment.segment_id,
            )
        if messages[-1].created_at != segment.last_message_at:
            raise ThresholdMiscalculation(
                "last_message_at",
                segment.last_message_at,
                messages[-1].created_at,
                segment.segment_id,
            )
