"""Hashing and identifier utilities for credit_threads.

Conversation IDs are deterministic so that the same case and participant
set always map to the same conversation. Message and segment IDs are
random: two identical messages sent twice are still two messages.
"""

import hashlib
import uuid

__all__ = [
    "generate_conversation_id",
    "generate_message_id",
    "generate_segment_id",
    "hash_bytes",
    "hash_text",
]


def hash_bytes(data: bytes) -> str:
    """Generate SHA256 hex digest of raw bytes.

    Args:
        data: Input bytes

    Returns:
        64-character hexadecimal SHA256 digest
    """
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text.

    Args:
        text: Input text to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hash_bytes(text.encode("utf-8"))


def generate_conversation_id(case_id: str, participant_ids: list[str]) -> str:
    """Generate deterministic conversation ID.

    The ID is a SHA256 hash of the case ID and the sorted, de-duplicated
    participant IDs, so participant order does not matter.

    Args:
        case_id: Credit case ID
        participant_ids: Participating user IDs

    Returns:
        Hexadecimal SHA256 hash string
    """
    participants = ",".join(sorted(set(participant_ids)))
    return hash_text(f"conversation|{case_id}|{participants}")


def generate_message_id() -> str:
    """Generate a random message ID."""
    return uuid.uuid4().hex


def generate_segment_id() -> str:
    """Generate a random segment ID."""
    return uuid.uuid4().hex
