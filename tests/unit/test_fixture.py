"""Unit tests for the isolation protocol hooks, wired with in-memory fakes."""

from unittest.mock import AsyncMock

import pytest

from export_isolation.consumers import Consumer, QueueConsumerRunner
from export_isolation.errors import BrokerProtocolError, ErrorCode, StructuralMismatch
from export_isolation.fixture import IsolationContext, IsolationProtocol
from export_isolation.resources import FEEDS, INDEXERS, QUEUES, ExecutionMode
from export_isolation.state import StorageState

from fakes import (
    FakeBroker,
    FakeDocumentStore,
    FakeFeedStore,
    FakeIndexerRegistry,
    FakeStoreProvider,
)

REVIEWS_QUEUE = "export.product.reviews.queue"
REVIEWS_FEED = "catalog_data_exporter_product_reviews"


class Pipeline:
    """Fakes sharing one call log, plus a review consumer that writes to both sinks."""

    def __init__(self, mode=ExecutionMode.QUEUED):
        self.calls = []
        self.broker = FakeBroker(calls=self.calls)
        self.document_store = FakeDocumentStore(calls=self.calls)
        self.feed_store = FakeFeedStore(calls=self.calls)
        self.indexers = FakeIndexerRegistry(calls=self.calls)
        self.state = StorageState("storefront")

        async def apply_review(payload):
            self.calls.append(f"consume:{payload['review_id']}")
            self.document_store.write("storefront_review", payload)
            self.feed_store.rows[REVIEWS_FEED].append(payload)

        self.consumer_runner = QueueConsumerRunner(
            self.broker,
            [Consumer(name="export.product.reviews", queue=REVIEWS_QUEUE, handler=apply_review)],
            timeout=5,
        )
        self.context = IsolationContext(
            execution_mode=mode,
            document_store=self.document_store,
            state_resolver=self.state,
            feed_store=self.feed_store,
            broker=self.broker,
            indexer_registry=self.indexers,
            consumer_runner=self.consumer_runner,
            store_provider=FakeStoreProvider(),
        )

    def publish_reviews(self, *review_ids):
        for review_id in review_ids:
            self.broker.publish(REVIEWS_QUEUE, {"review_id": review_id, "title": f"Review {review_id}"})


@pytest.fixture
def pipeline():
    return Pipeline()


@pytest.fixture
def protocol(pipeline):
    return IsolationProtocol(pipeline.context)


class TestBeforeSuite:
    @pytest.mark.asyncio
    async def test_purges_then_forces_indexers(self, pipeline, protocol):
        await protocol.before_suite()

        purge_calls = [f"purge:{queue}" for queue in QUEUES]
        indexer_calls = [f"indexer:{name}:False" for name in INDEXERS]
        assert pipeline.calls == purge_calls + indexer_calls


class TestBeforeEach:
    @pytest.mark.asyncio
    async def test_leftover_messages_are_purged_before_seeding(self, pipeline, protocol):
        pipeline.publish_reviews(99)

        async def seed():
            pipeline.publish_reviews(1, 2)

        await protocol.before_each(seed)

        assert pipeline.document_store.sources["storefront_review"] == [
            {"review_id": 1, "title": "Review 1"},
            {"review_id": 2, "title": "Review 2"},
        ]

    @pytest.mark.asyncio
    async def test_order_is_purge_seed_consume_refresh(self, pipeline, protocol):
        async def seed():
            pipeline.calls.append("seed")
            pipeline.publish_reviews(1)

        await protocol.before_each(seed)

        assert pipeline.calls == [f"purge:{queue}" for queue in QUEUES] + [
            "seed",
            "consume:1",
            "ensure:storefront_review",
            "refresh:storefront_review",
        ]

    @pytest.mark.asyncio
    async def test_review_source_exists_even_without_messages(self, pipeline, protocol):
        await protocol.before_each()

        assert pipeline.document_store.sources == {"storefront_review": []}

    @pytest.mark.asyncio
    async def test_drain_applies_exactly_the_queued_messages(self, pipeline, protocol):
        await protocol.before_each()
        pipeline.publish_reviews(1, 2, 3)

        await protocol.drain()

        assert [doc["review_id"] for doc in pipeline.document_store.sources["storefront_review"]] == [1, 2, 3]
        assert await pipeline.broker.get_queue_message_count(REVIEWS_QUEUE) == 0


class TestAfterEach:
    @pytest.mark.asyncio
    async def test_post_teardown_state_is_clean(self, pipeline, protocol):
        async def seed():
            pipeline.publish_reviews(1, 2)

        await protocol.before_each(seed)
        pipeline.feed_store.rows[FEEDS[0]].append({"category_id": 3})
        pipeline.document_store.write("storefront_default_category", {"category_id": 3})
        pipeline.publish_reviews(4)

        await protocol.after_each()

        state = await protocol.orchestrator.residual_state()
        assert state.is_clean
        assert all(count == 0 for count in state.feed_rows.values())
        assert all(depth == 0 for depth in state.queue_depths.values())
        assert pipeline.document_store.sources == {}

    @pytest.mark.asyncio
    async def test_teardown_order(self, pipeline, protocol):
        await protocol.after_each()

        first_truncate = pipeline.calls.index(f"truncate:{FEEDS[0]}")
        first_purge = pipeline.calls.index(f"purge:{QUEUES[0]}")
        last_delete = max(i for i, call in enumerate(pipeline.calls) if call.startswith("delete:"))
        assert last_delete < first_truncate < first_purge

    @pytest.mark.asyncio
    async def test_deletes_sources_for_every_store(self, pipeline, protocol):
        await protocol.after_each()

        attempts = pipeline.document_store.delete_attempts
        assert attempts.count("storefront_review") == 1
        assert "storefront_fixture_second_store_product" in attempts
        assert len(attempts) == 1 + 3 * 2

    @pytest.mark.asyncio
    async def test_purge_failure_propagates_after_cleanup(self, pipeline, protocol):
        pipeline.feed_store.rows[FEEDS[1]].append({"sku": "A"})
        broker = AsyncMock()
        broker.purge_queue.side_effect = BrokerProtocolError(ErrorCode.BROKER_PROTOCOL, "NOT_FOUND")
        protocol.orchestrator.broker = broker

        with pytest.raises(BrokerProtocolError):
            await protocol.after_each()

        assert pipeline.feed_store.rows[FEEDS[1]] == []


class TestDirectMode:
    @pytest.mark.asyncio
    async def test_no_broker_or_consumer_calls(self):
        pipeline = Pipeline(mode=ExecutionMode.DIRECT)
        broker = AsyncMock()
        consumer_runner = AsyncMock()
        pipeline.context.broker = broker
        pipeline.context.consumer_runner = consumer_runner
        protocol = IsolationProtocol(pipeline.context)
        seed = AsyncMock()

        await protocol.before_suite()
        await protocol.before_each(seed)
        await protocol.drain()
        await protocol.after_each()

        seed.assert_awaited_once()
        broker.purge_queue.assert_not_called()
        broker.get_queue_message_count.assert_not_called()
        consumer_runner.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_teardown_still_resets_storage(self):
        pipeline = Pipeline(mode=ExecutionMode.DIRECT)
        pipeline.document_store.write("storefront_review", {"review_id": 1})
        pipeline.feed_store.rows[REVIEWS_FEED].append({"review_id": 1})
        protocol = IsolationProtocol(pipeline.context)

        await protocol.after_each()

        assert pipeline.document_store.sources == {}
        assert pipeline.feed_store.rows[REVIEWS_FEED] == []


class TestAssertEqual:
    def test_delegates_to_comparator(self, protocol):
        protocol.assert_equal({"a": 1}, {"a": 1})
        with pytest.raises(StructuralMismatch):
            protocol.assert_equal({"a": 1}, {"a": 2})
