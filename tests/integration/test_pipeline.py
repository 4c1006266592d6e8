"""Integration tests for the credit_threads conversation pipeline."""

import asyncio

import pytest

from conftest import MessageFactory
from credit_threads.config import CreditThreadsConfig, RedisSettings
from credit_threads.conversation_log import ConversationLog
from credit_threads.infra.mongo import repositories
from credit_threads.infra.mongo.repositories import MongoConversationRepository
from credit_threads.models.conversation import ConversationStatus
from credit_threads.models.message import MessageKind, SenderSnapshot
from mocks.mock_mongo import MockMongoClient


@pytest.fixture
def mongo_log(monkeypatch: pytest.MonkeyPatch) -> ConversationLog:
    """ConversationLog over the Mongo repository, backed by the mock client."""
    monkeypatch.setattr(repositories, "MongoClient", MockMongoClient)
    return ConversationLog(
        store_class=MongoConversationRepository,
        config=CreditThreadsConfig(redis=RedisSettings(enabled=False)),
    )


class TestCreditCasePipeline:
    """End-to-end flow of a credit case conversation."""

    @pytest.mark.asyncio
    async def test_case_lifecycle(
        self,
        mongo_log: ConversationLog,
        make_message: MessageFactory,
        sender_snapshot: SenderSnapshot,
    ) -> None:
        async with mongo_log as log:
            convo = await log.create_conversation("case-77", ["faculty-1"], "issuer-1")

            for i in range(250):
                sender = "issuer-1" if i % 2 else "faculty-1"
                await log.append(convo.id, make_message(i, sender=sender))

            summary = await log.get_conversation(convo.id)
            assert summary.total_messages == 250
            assert summary.segment_count == 3
            assert summary.last_message is not None
            assert summary.last_message.text == "message 249"

            # Page backwards through the whole history
            history = []
            before = None
            while page := await log.read(convo.id, limit=60, before=before):
                history = page + history
                before = page[0].created_at
            assert [m.text for m in history] == [f"message {i}" for i in range(250)]
            assert len({m.id for m in history}) == 250

            result = await log.send_message(
                convo.id, "issuer-1", sender_snapshot, "Credits approved.", kind="positive"
            )
            assert result.total_messages == 251
            assert result.message.kind == MessageKind.POSITIVE

            await log.set_status(convo.id, ConversationStatus.RESOLVED)
            listing = await log.list_conversations("faculty-1")

        assert listing.total == 1
        listed = listing.conversations[0]
        assert listed.id == convo.id
        assert listed.status == ConversationStatus.RESOLVED
        assert listed.total_messages == 251
        assert listed.unread_counts == {"faculty-1": 1}

    @pytest.mark.asyncio
    async def test_reopening_same_case_returns_same_conversation(
        self,
        mongo_log: ConversationLog,
        make_message: MessageFactory,
    ) -> None:
        async with mongo_log as log:
            first = await log.create_conversation("case-77", ["faculty-1"], "issuer-1")
            await log.append(first.id, make_message(0))

            again = await log.create_conversation("case-77", ["issuer-1"], "faculty-1")

        assert again.id == first.id
        assert again.total_messages == 1

    @pytest.mark.asyncio
    async def test_concurrent_senders(
        self,
        mongo_log: ConversationLog,
        make_message: MessageFactory,
    ) -> None:
        async with mongo_log as log:
            convo = await log.create_conversation("case-78", ["faculty-1"], "issuer-1")

            results = await asyncio.gather(
                *(log.append(convo.id, make_message(i)) for i in range(20))
            )
            messages = await log.read(convo.id, limit=100)

        assert sorted(r.total_messages for r in results) == list(range(1, 21))
        assert {m.id for m in messages} == {r.message.id for r in results}
