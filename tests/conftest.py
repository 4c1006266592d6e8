"""Shared test fixtures for credit_threads.

This module provides pytest fixtures used across all tests.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from credit_threads.infra.memory.store import InMemoryConversationStore
from credit_threads.models.message import (
    MessageContent,
    MessageDTO,
    MessageKind,
    SenderSnapshot,
)
from credit_threads.services.codec import MessageCodec

BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

MessageFactory = Callable[..., MessageDTO]


# Mock fixtures
@pytest.fixture
def mock_store() -> AsyncMock:
    """Create mock conversation store interface."""
    store = AsyncMock()
    store.get_conversation.return_value = None
    store.list_conversations.return_value = (0, [])
    store.set_status.return_value = True
    store.increment_unread.return_value = True
    store.reset_unread.return_value = True
    return store


@pytest.fixture
def memory_store() -> InMemoryConversationStore:
    """Create empty in-memory conversation store."""
    return InMemoryConversationStore()


@pytest.fixture
def codec() -> MessageCodec:
    """Create default segment codec."""
    return MessageCodec()


# Sample data fixtures
@pytest.fixture
def sender_snapshot() -> SenderSnapshot:
    """Create sample SenderSnapshot."""
    return SenderSnapshot(
        name="Anita Rao",
        faculty_id="F-1021",
        college="College of Engineering",
        department="Computer Science",
    )


@pytest.fixture
def make_message(sender_snapshot: SenderSnapshot) -> MessageFactory:
    """Factory for messages spaced one second apart from BASE_TIME."""

    def _make(
        index: int,
        text: str | None = None,
        sender: str = "faculty-1",
        kind: MessageKind = MessageKind.POSITIVE,
        **meta: object,
    ) -> MessageDTO:
        return MessageDTO(
            sender=sender,
            sender_snapshot=sender_snapshot,
            kind=kind,
            content=MessageContent(text=text or f"message {index}", meta=dict(meta)),
            created_at=BASE_TIME + timedelta(seconds=index),
        )

    return _make


@pytest.fixture
def sample_message(make_message: MessageFactory) -> MessageDTO:
    """Create sample MessageDTO."""
    return make_message(0, text="Certificate uploaded for the FDP workshop.")
