"""Service layer for credit_threads.

This module exports the main service entry points.
"""

from credit_threads.services.append_coordinator import AppendCoordinator
from credit_threads.services.codec import MessageCodec
from credit_threads.services.message_builder import MessageBuilder
from credit_threads.services.paginated_reader import PaginatedReader
from credit_threads.services.transaction import OptimisticTransaction, RetriesExhausted

__all__ = [
    "AppendCoordinator",
    "MessageBuilder",
    "MessageCodec",
    "OptimisticTransaction",
    "PaginatedReader",
    "RetriesExhausted",
]
