"""Interface contracts for credit_threads.

This module exports all Protocol-based interfaces for dependency injection.
"""

from credit_threads.interfaces.cache import SegmentCacheInterface
from credit_threads.interfaces.store import ConversationStoreInterface

__all__ = [
    "ConversationStoreInterface",
    "SegmentCacheInterface",
]
