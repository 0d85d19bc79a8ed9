"""
Interfaces of the external systems the harness drives.

Concrete implementations live in the adapter modules (database, feeds,
messaging, document_store, state, indexer, stores, consumers); tests use
in-memory fakes or AsyncMock objects that satisfy the same protocols.
"""
from typing import List, Protocol

from .models import Store
from .resources import DataSourceKey


class DocumentStore(Protocol):
    async def delete_if_exists(self, name: str) -> bool:
        """Delete a data source. Returns False when it does not exist."""
        ...

    async def ensure_exists(self, name: str) -> bool:
        """Create a data source when missing. Returns True when it was created."""
        ...

    async def refresh(self, name: str) -> None:
        ...


class StateResolver(Protocol):
    def current_data_source_name(self, key: DataSourceKey) -> str:
        ...


class FeedStore(Protocol):
    async def delete_all(self, feed: str) -> int:
        ...

    async def count_rows(self, feed: str) -> int:
        ...


class Broker(Protocol):
    async def purge_queue(self, queue_name: str) -> None:
        ...

    async def get_queue_message_count(self, queue_name: str) -> int:
        ...


class Indexer(Protocol):
    async def set_scheduled(self, scheduled: bool) -> None:
        ...

    async def is_scheduled(self) -> bool:
        ...


class IndexerRegistry(Protocol):
    async def load(self, name: str) -> Indexer:
        ...


class ConsumerRunner(Protocol):
    async def invoke(self) -> None:
        """Apply every message queued before the call, then return."""
        ...


class StoreProvider(Protocol):
    async def get_stores(self) -> List[Store]:
        ...
