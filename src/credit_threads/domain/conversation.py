"""Internal Conversation aggregate for credit_threads.

This module contains the Conversation aggregate: the ordered segment list
plus running totals and case metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime

from credit_threads.domain.segment import Segment
from credit_threads.exceptions import ThresholdMiscalculation
from credit_threads.models.conversation import (
    ConversationDTO,
    ConversationStatus,
    LastMessageDTO,
)
from credit_threads.utils.hashing import generate_conversation_id
from credit_threads.utils.timestamps import utcnow

__all__ = [
    "Conversation",
]


@dataclass
class Conversation:
    """Conversation aggregate as read from a store.

    Instances are snapshots. The store is the only place where the
    aggregate changes; callers re-read instead of mutating a snapshot.
    """

    id: str
    case_id: str
    created_by: str
    participants: list[str] = field(default_factory=list)
    status: ConversationStatus = ConversationStatus.OPEN
    segments: list[Segment] = field(default_factory=list)
    segment_count: int = 0
    total_messages: int = 0
    last_message: LastMessageDTO | None = None
    unread_counts: dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(
        cls,
        case_id: str,
        participant_ids: list[str],
        created_by: str,
    ) -> "Conversation":
        """Create an empty conversation for a case.

        The creator is always a participant. Participant order is kept,
        duplicates are dropped.
        """
        participants = list(dict.fromkeys([*participant_ids, created_by]))
        return cls(
            id=generate_conversation_id(case_id, participants),
            case_id=case_id,
            created_by=created_by,
            participants=participants,
        )

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def last_segment(self) -> Segment | None:
        return self.segments[-1] if self.segments else None

    @property
    def last_segment_index(self) -> int:
        return len(self.segments) - 1

    def verify_totals(self) -> None:
        """Check the running counters against the loaded segments.

        Raises:
            ThresholdMiscalculation: If a running counter has drifted
        """
        if len(self.segments) != self.segment_count:
            raise ThresholdMiscalculation("segment_count", self.segment_count, len(self.segments))
        counted = sum(segment.message_count for segment in self.segments)
        if counted != self.total_messages:
            raise ThresholdMiscalculation("total_messages", self.total_messages, counted)

    def to_dto(self) -> ConversationDTO:
        """Convert to immutable DTO, without segment payloads."""
        return ConversationDTO(
            id=self.id,
            case_id=self.case_id,
            participants=list(self.participants),
            created_by=self.created_by,
            status=self.status,
            total_messages=self.total_messages,
            segment_count=self.segment_count,
            last_message=self.last_message,
            unread_counts=dict(self.unread_counts),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
