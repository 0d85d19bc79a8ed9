from .collaborators import ConsumerRunner, DocumentStore, StateResolver
from .logging_config import configure_logging
from .resources import DataSourceKey, ExecutionMode

logger = configure_logging("export-isolation:drain")


class DrainCoordinator:
    """Turns the asynchronous export pipeline into a synchronous step before assertions.

    Only active in queued mode; in direct mode the pipeline already resolves
    synchronously and neither consumers nor the document store are touched.
    """

    def __init__(
        self,
        execution_mode: ExecutionMode,
        consumer_runner: ConsumerRunner,
        document_store: DocumentStore,
        state_resolver: StateResolver,
    ):
        self.execution_mode = execution_mode
        self.consumer_runner = consumer_runner
        self.document_store = document_store
        self.state_resolver = state_resolver

    async def invoke_consumers(self) -> None:
        if not self.execution_mode.uses_queues:
            logger.debug("Skipping consumers", mode=self.execution_mode.value)
            return
        await self.consumer_runner.invoke()

    async def refresh_source(self, key: DataSourceKey) -> str:
        """Make sure the source for ``key`` exists and is refreshed; returns its name"""
        name = self.state_resolver.current_data_source_name(key)
        if not self.execution_mode.uses_queues:
            return name
        await self.document_store.ensure_exists(name)
        await self.document_store.refresh(name)
        logger.debug("Refreshed source", name=name, entity_type=key.entity_type.value)
        return name
