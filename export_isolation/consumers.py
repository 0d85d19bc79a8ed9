"""
Synchronous invocation of export queue consumers.

A drain snapshots the depth of every consumer queue when it starts and then
applies at most that many messages per queue, so messages published after
the call began are left for the next drain. The whole drain is bounded by a
timeout; a hung consumer is an infrastructure fault, never a silent pass.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from .collaborators import Broker
from .errors import ConsumerError, DrainTimeoutError, ErrorCode
from .logging_config import configure_logging

logger = configure_logging("export-isolation:consumers")

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass
class Consumer:
    name: str
    queue: str
    handler: Handler


class QueueConsumerRunner:
    """Runs registered consumers until the messages present at call time are applied"""

    def __init__(self, broker: Broker, consumers: Sequence[Consumer], timeout: float = 30.0):
        self.broker = broker
        self.consumers: List[Consumer] = list(consumers)
        self.timeout = timeout

    async def invoke(self) -> None:
        try:
            await asyncio.wait_for(self._drain_all(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Consumer drain timed out", timeout=self.timeout)
            raise DrainTimeoutError(
                ErrorCode.DRAIN_TIMEOUT,
                f"Consumers did not finish within {self.timeout}s",
                {"consumers": [c.name for c in self.consumers], "timeout": self.timeout},
            ) from e

    async def _drain_all(self) -> Dict[str, int]:
        pending = {}
        for consumer in self.consumers:
            pending[consumer.name] = await self.broker.get_queue_message_count(consumer.queue)

        applied = {}
        for consumer in self.consumers:
            applied[consumer.name] = await self._drain(consumer, pending[consumer.name])
            logger.info(
                "Drained consumer",
                consumer=consumer.name,
                queue=consumer.queue,
                pending=pending[consumer.name],
                applied=applied[consumer.name],
            )
        return applied

    async def _drain(self, consumer: Consumer, pending: int) -> int:
        applied = 0
        while applied < pending:
            message = await self.broker.fetch_message(consumer.queue)
            if message is None:
                break
            await self._apply(consumer, message)
            applied += 1
        return applied

    async def _apply(self, consumer: Consumer, message) -> None:
        try:
            payload = json.loads(message.body.decode())
            await consumer.handler(payload)
        except asyncio.CancelledError:
            # An unsettled delivery survives purges and is redelivered later
            await message.reject(requeue=False)
            logger.warning(
                "Consumer cancelled mid-message",
                consumer=consumer.name,
                queue=consumer.queue,
                correlation_id=message.correlation_id,
            )
            raise
        except Exception as e:
            await message.reject(requeue=False)
            logger.error(
                "Consumer failed to apply message",
                consumer=consumer.name,
                queue=consumer.queue,
                correlation_id=message.correlation_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ConsumerError(
                ErrorCode.CONSUMER_FAILED,
                f"Consumer {consumer.name} failed: {e}",
                {"consumer": consumer.name, "queue": consumer.queue},
            ) from e
        await message.ack()
