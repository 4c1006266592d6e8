"""Utility functions for credit_threads.

This module contains internal utility functions.
"""

from credit_threads.utils.hashing import (
    generate_conversation_id,
    generate_message_id,
    generate_segment_id,
    hash_bytes,
    hash_text,
)
from credit_threads.utils.timestamps import normalize_timestamp, to_utc, utcnow

__all__ = [
    "generate_conversation_id",
    "generate_message_id",
    "generate_segment_id",
    "hash_bytes",
    "hash_text",
    "normalize_timestamp",
    "to_utc",
    "utcnow",
]
