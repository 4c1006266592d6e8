"""Optimistic transaction helper for credit_threads.

An optimistic transaction is an attempt function that reads a fresh
snapshot, computes a change and submits it as a conditional commit.
The attempt returns the commit result, or None when the guard rejected
the commit. Rejected attempts leave no state behind, so the helper simply
runs the attempt again until it succeeds or the attempt budget runs out.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from credit_threads.logging import get_logger

__all__ = [
    "OptimisticTransaction",
    "RetriesExhausted",
]

logger = get_logger(__name__)

T = TypeVar("T")


class RetriesExhausted(Exception):
    """Every attempt of an optimistic transaction was rejected."""

    def __init__(self, name: str, attempts: int) -> None:
        super().__init__(f"{name}: all {attempts} attempts rejected")
        self.name = name
        self.attempts = attempts


class OptimisticTransaction(Generic[T]):
    """Bounded read-compute-commit retry loop.

    Example:
        async def attempt(n: int) -> Conversation | None:
            snapshot = await store.get_conversation(cid)
            return await store.replace_last_segment(...)

        result, attempts = await OptimisticTransaction("append", 5).run(attempt)
    """

    def __init__(self, name: str, max_attempts: int) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.name = name
        self.max_attempts = max_attempts

    async def run(
        self,
        attempt: Callable[[int], Awaitable[T | None]],
        **log_context: Any,
    ) -> tuple[T, int]:
        """Run attempts until one commits.

        Exceptions raised by the attempt function (including cancellation)
        propagate immediately and end the transaction.

        Args:
            attempt: Called with the 1-based attempt number
            **log_context: Extra fields for conflict log events

        Returns:
            (commit result, number of attempts used)

        Raises:
            RetriesExhausted: If every attempt was rejected
        """
        for number in range(1, self.max_attempts + 1):
            result = await attempt(number)
            if result is not None:
                return result, number
            logger.debug(
                "optimistic_commit_rejected",
                transaction=self.name,
                attempt=number,
                max_attempts=self.max_attempts,
                **log_context,
            )

        logger.warning(
            "optimistic_retries_exhausted",
            transaction=self.name,
            attempts=self.max_attempts,
            **log_context,
        )
        raise RetriesExhausted(self.name, self.max_attempts)
