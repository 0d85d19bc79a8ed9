"""
Reset orchestration for the storefront export pipeline.

Teardown (end of a test): delete document sources, then truncate feeds.
Setup (start of the next test or suite): purge queues, then force indexers
into on-save mode. Purging must come before any new source record is
created, otherwise leftover messages would be drained into the next test.
"""
from typing import Dict, Iterable

from .collaborators import Broker, DocumentStore, FeedStore, IndexerRegistry, StateResolver
from .logging_config import configure_logging
from .models import ResidualState, Store
from .resources import FEEDS, INDEXERS, QUEUES, ExecutionMode, data_source_keys

logger = configure_logging("export-isolation:orchestrator")


class ResetOrchestrator:
    """Restores feeds, queues, document sources and indexer modes to a known state"""

    def __init__(
        self,
        execution_mode: ExecutionMode,
        document_store: DocumentStore,
        state_resolver: StateResolver,
        feed_store: FeedStore,
        broker: Broker,
        indexer_registry: IndexerRegistry,
    ):
        self.execution_mode = execution_mode
        self.document_store = document_store
        self.state_resolver = state_resolver
        self.feed_store = feed_store
        self.broker = broker
        self.indexer_registry = indexer_registry

    async def reset_all_data_sources(self, stores: Iterable[Store]) -> int:
        """
        Delete the review source once and every per-store source of every store.

        Sources that do not exist are skipped. Returns the number actually deleted.
        """
        deleted = 0
        codes = [store.code for store in stores]
        for key in data_source_keys(codes):
            name = self.state_resolver.current_data_source_name(key)
            if await self.document_store.delete_if_exists(name):
                deleted += 1
        logger.info("Reset data sources", stores=len(codes), deleted=deleted)
        return deleted

    async def truncate_feeds(self) -> Dict[str, int]:
        deleted = {}
        for feed in FEEDS:
            deleted[feed] = await self.feed_store.delete_all(feed)
        logger.info("Truncated feeds", rows=sum(deleted.values()))
        return deleted

    async def purge_queues(self) -> None:
        """Purge every export queue. Broker faults propagate."""
        if not self.execution_mode.uses_queues:
            logger.debug("Skipping queue purge", mode=self.execution_mode.value)
            return
        for queue in QUEUES:
            await self.broker.purge_queue(queue)
        logger.info("Purged export queues", queues=len(QUEUES))

    async def force_indexers_synchronous(self) -> None:
        for name in INDEXERS:
            indexer = await self.indexer_registry.load(name)
            await indexer.set_scheduled(False)
        logger.info("Indexers set to update on save", indexers=len(INDEXERS))

    async def residual_state(self) -> ResidualState:
        """Rows left per feed and, when queues are in use, messages left per queue"""
        feed_rows = {feed: await self.feed_store.count_rows(feed) for feed in FEEDS}
        queue_depths = {}
        if self.execution_mode.uses_queues:
            queue_depths = {queue: await self.broker.get_queue_message_count(queue) for queue in QUEUES}
        return ResidualState(feed_rows=feed_rows, queue_depths=queue_depths)
