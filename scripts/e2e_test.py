#!/usr/bin/env python
"""End-to-end test script for credit_threads.

This script exercises the conversation log against a real MongoDB and,
if configured, a real Redis segment cache.

Usage:
    python scripts/e2e_test.py

Prerequisites:
    1. MongoDB running on configured URI
    2. (optional) Redis running on configured URL

Environment variables (via .env):
    CREDIT_THREADS_MONGO_URI=mongodb://localhost:27017
    CREDIT_THREADS_MONGO_DATABASE=credit_threads_test
    CREDIT_THREADS_REDIS_URL=redis://localhost:6379/0
"""

import asyncio
import logging
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from credit_threads.config import CreditThreadsConfig
from credit_threads.domain.conversation import Conversation
from credit_threads.exceptions import AppendConflict
from credit_threads.infra.mongo.client import MongoClient
from credit_threads.infra.mongo.repositories import MongoConversationRepository
from credit_threads.infra.redis.cache import SegmentCache
from credit_threads.infra.redis.client import RedisClient
from credit_threads.logging import configure_logging, get_logger
from credit_threads.models.conversation import ConversationStatus
from credit_threads.models.message import MessageKind, SenderSnapshot
from credit_threads.services.append_coordinator import AppendCoordinator
from credit_threads.services.message_builder import MessageBuilder
from credit_threads.services.paginated_reader import PaginatedReader

# Configure logging
configure_logging(level=logging.INFO)
logger = get_logger(__name__)

ISSUER = SenderSnapshot(name="R. Iyer", faculty_id="F-0001", department="Examinations")
FACULTY = SenderSnapshot(name="A. Rao", faculty_id="F-1021", department="Computer Science")


class E2ETestRunner:
    """End-to-end test runner for the conversation log."""

    def __init__(self, config: CreditThreadsConfig) -> None:
        """Initialize test runner with configuration."""
        self.config = config
        self.mongo_client: MongoClient | None = None
        self.redis_client: RedisClient | None = None
        self.store: MongoConversationRepository | None = None
        self.cache: SegmentCache | None = None
        self.builder = MessageBuilder()

    async def setup(self) -> None:
        """Set up infrastructure connections."""
        print("\n" + "=" * 60)
        print("Setting up infrastructure connections...")
        print("=" * 60)

        print(f"\nConnecting to MongoDB: {self.config.mongo.database}...")
        self.mongo_client = MongoClient(self.config.mongo)
        await self.mongo_client.connect()
        await self.mongo_client.create_indexes()
        self.store = MongoConversationRepository(self.mongo_client)
        print("  MongoDB connected successfully")

        if self.config.redis_enabled:
            print(f"\nConnecting to Redis: {self.config.redis.url}...")
            self.redis_client = RedisClient(self.config.redis)
            if await self.redis_client.connect():
                self.cache = SegmentCache(self.redis_client, ttl=60)
                print("  Redis connected, segment cache enabled")
            else:
                print("  Redis unavailable, continuing without cache")

    async def teardown(self) -> None:
        """Clean up infrastructure connections."""
        print("\n" + "=" * 60)
        print("Cleaning up connections...")
        print("=" * 60)

        if self.redis_client:
            await self.redis_client.disconnect()
            print("  Redis disconnected")

        if self.mongo_client:
            await self.mongo_client.disconnect()
            print("  MongoDB disconnected")

    async def clear_test_data(self) -> None:
        """Clear any existing test data."""
        print("\nClearing existing test data...")
        if self.mongo_client:
            await self.mongo_client.conversations.delete_many({})
            print("  conversations collection cleared")

    async def _open(self, case_id: str) -> str:
        assert self.store is not None
        conversation = await self.store.create_conversation(
            Conversation.new(case_id, ["faculty-1"], "issuer-1")
        )
        return conversation.id

    async def test_rotation_and_paging(self) -> dict:
        """Test sequential appends across several segments and full paging."""
        print("\n" + "=" * 60)
        print("TEST 1: Rotation and paging")
        print("=" * 60)
        assert self.store is not None

        cid = await self._open("e2e-case-1")
        coordinator = AppendCoordinator(self.store)
        reader = PaginatedReader(self.store, cache=self.cache)
        start = datetime.now(UTC)

        began = time.perf_counter()
        for i in range(250):
            kind = MessageKind.NEGATIVE if i % 10 == 0 else MessageKind.SYSTEM
            message = self.builder.build(
                sender_id="issuer-1" if i % 2 else "faculty-1",
                sender_snapshot=ISSUER if i % 2 else FACULTY,
                text=f"Message {i}",
                kind=kind,
                created_at=start + timedelta(milliseconds=i),
            )
            await coordinator.append(cid, message)
        append_seconds = time.perf_counter() - began

        conversation = await self.store.get_conversation(cid)
        assert conversation is not None
        print(f"  Appended 250 messages in {append_seconds:.2f}s")
        print(f"  Segments: {[s.message_count for s in conversation.segments]}")
        print(f"  Compressed sizes: {[s.compressed_size for s in conversation.segments]}")

        history = []
        before = None
        while page := await reader.read(cid, limit=60, before=before):
            history = page + history
            before = page[0].created_at
        assert [m.text for m in history] == [f"Message {i}" for i in range(250)]
        print(f"  Paged back through {len(history)} messages in order")

        return {
            "total_messages": conversation.total_messages,
            "segment_count": conversation.segment_count,
            "append_seconds": round(append_seconds, 2),
        }

    async def test_concurrent_appends(self) -> dict:
        """Test concurrent writers on one conversation."""
        print("\n" + "=" * 60)
        print("TEST 2: Concurrent appends")
        print("=" * 60)
        assert self.store is not None

        cid = await self._open("e2e-case-2")
        coordinator = AppendCoordinator(self.store)

        async def send(i: int) -> int:
            message = self.builder.build("faculty-1", FACULTY, f"Concurrent {i}")
            try:
                result = await coordinator.append(cid, message)
                return result.attempts
            except AppendConflict:
                return -1

        attempts = await asyncio.gather(*(send(i) for i in range(20)))
        conversation = await self.store.get_conversation(cid, include_segments=False)
        assert conversation is not None

        committed = sum(1 for a in attempts if a > 0)
        assert conversation.total_messages == committed
        print(f"  Committed {committed}/20, conflicts {attempts.count(-1)}")
        print(f"  Attempt histogram: {sorted(a for a in attempts if a > 0)}")

        await self.store.set_status(cid, ConversationStatus.RESOLVED)
        return {"committed": committed, "conflicts": attempts.count(-1)}

    async def run_all_tests(self) -> None:
        """Run all E2E tests."""
        print("\n" + "#" * 60)
        print("#  credit_threads End-to-End Test Suite")
        print("#" * 60)

        try:
            await self.setup()
            await self.clear_test_data()

            rotation_results = await self.test_rotation_and_paging()
            concurrency_results = await self.test_concurrent_appends()

            print("\n" + "=" * 60)
            print("TEST SUMMARY")
            print("=" * 60)

            print("\nRotation and paging:")
            for key, value in rotation_results.items():
                print(f"  {key}: {value}")

            print("\nConcurrent appends:")
            for key, value in concurrency_results.items():
                print(f"  {key}: {value}")

            print("\n" + "=" * 60)
            print("ALL TESTS COMPLETED SUCCESSFULLY")
            print("=" * 60)

        except Exception as e:
            logger.exception("e2e_test_failed")
            print(f"\nERROR: {e}")
            raise

        finally:
            await self.teardown()


async def main() -> None:
    """Main entry point."""
    config = CreditThreadsConfig()

    if not config.mongo.database.endswith("_test"):
        print("ERROR: CREDIT_THREADS_MONGO_DATABASE must end with '_test'")
        print("This script clears the conversations collection.")
        sys.exit(1)

    runner = E2ETestRunner(config)
    await runner.run_all_tests()


if __name__ == "__main__":
    asyncio.run(main())
