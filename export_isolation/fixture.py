"""
Test-fixture context and the isolation protocol run around every test.

The context is built once per suite and holds every collaborator; the
protocol is built from it and exposes the three hooks:

    before_suite  -> purge queues, force indexers to on-save
    before_each   -> purge queues, seed, invoke consumers, refresh review source
    after_each    -> reset data sources, truncate feeds, purge queues
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence

from .collaborators import (
    Broker,
    ConsumerRunner,
    DocumentStore,
    FeedStore,
    IndexerRegistry,
    StateResolver,
    StoreProvider,
)
from .comparator import StructuralComparator
from .config import Config
from .consumers import Consumer, QueueConsumerRunner
from .database import DatabaseManager
from .document_store import HttpDocumentStore
from .drain import DrainCoordinator
from .feeds import FeedTables
from .indexer import PostgresIndexerRegistry
from .logging_config import configure_logging
from .messaging import MessageBroker
from .orchestrator import ResetOrchestrator
from .resources import DataSourceKey, ExecutionMode
from .state import StorageState
from .stores import StoreRepository

logger = configure_logging("export-isolation:fixture")

Seed = Callable[[], Awaitable[Any]]


@dataclass
class IsolationContext:
    """Every collaborator the isolation hooks need, built once per suite"""

    execution_mode: ExecutionMode
    document_store: DocumentStore
    state_resolver: StateResolver
    feed_store: FeedStore
    broker: Broker
    indexer_registry: IndexerRegistry
    consumer_runner: ConsumerRunner
    store_provider: StoreProvider


class IsolationProtocol:
    def __init__(self, context: IsolationContext):
        self.context = context
        self.orchestrator = ResetOrchestrator(
            execution_mode=context.execution_mode,
            document_store=context.document_store,
            state_resolver=context.state_resolver,
            feed_store=context.feed_store,
            broker=context.broker,
            indexer_registry=context.indexer_registry,
        )
        self.drain_coordinator = DrainCoordinator(
            execution_mode=context.execution_mode,
            consumer_runner=context.consumer_runner,
            document_store=context.document_store,
            state_resolver=context.state_resolver,
        )
        self.comparator = StructuralComparator()

    async def before_suite(self) -> None:
        logger.info("Preparing suite", mode=self.context.execution_mode.value)
        await self.orchestrator.purge_queues()
        await self.orchestrator.force_indexers_synchronous()

    async def before_each(self, seed: Optional[Seed] = None) -> None:
        """Purge, run the seed that creates source records, then drain."""
        await self.orchestrator.purge_queues()
        if seed is not None:
            await seed()
        await self.drain()

    async def drain(self) -> None:
        if not self.context.execution_mode.uses_queues:
            return
        await self.drain_coordinator.invoke_consumers()
        await self.drain_coordinator.refresh_source(DataSourceKey.review())

    async def after_each(self) -> None:
        stores = await self.context.store_provider.get_stores()
        await self.orchestrator.reset_all_data_sources(stores)
        await self.orchestrator.truncate_feeds()
        await self.orchestrator.purge_queues()

    def assert_equal(self, expected: Any, actual: Any, message: Optional[str] = None) -> None:
        self.comparator.assert_equal(expected, actual, message)


@asynccontextmanager
async def open_context(cfg: Config, consumers: Sequence[Consumer] = ()) -> AsyncIterator[IsolationContext]:
    """Connect to the configured infrastructure and yield a ready context.

    The broker is only connected in queued mode.
    """
    mode = cfg.execution_mode
    db = DatabaseManager(cfg.POSTGRES_DSN)
    broker = MessageBroker(cfg.BUS_BROKER, timeout=cfg.BROKER_TIMEOUT_SECONDS)
    document_store = HttpDocumentStore(cfg.DOCUMENT_STORE_URL, timeout=cfg.DOCUMENT_STORE_TIMEOUT_SECONDS)

    await db.connect()
    try:
        if mode.uses_queues:
            await broker.connect()
        await document_store.connect()
        yield IsolationContext(
            execution_mode=mode,
            document_store=document_store,
            state_resolver=StorageState(cfg.DATA_SOURCE_PREFIX),
            feed_store=FeedTables(db, cfg.FEED_TABLE_PREFIX),
            broker=broker,
            indexer_registry=PostgresIndexerRegistry(db),
            consumer_runner=QueueConsumerRunner(broker, consumers, timeout=cfg.CONSUMER_TIMEOUT_SECONDS),
            store_provider=StoreRepository(db),
        )
    finally:
        await document_store.disconnect()
        await broker.disconnect()
        await db.disconnect()
