import asyncio
from typing import Awaitable, Optional, TypeVar

import aio_pika
from aio_pika.abc import AbstractIncomingMessage, AbstractQueue
from aio_pika.exceptions import AMQPError

from .errors import BrokerError, BrokerProtocolError, BrokerTimeoutError, ErrorCode
from .logging_config import configure_logging

logger = configure_logging("export-isolation:messaging")

T = TypeVar("T")


class MessageBroker:
    """RabbitMQ access for purging and draining the export queues"""

    def __init__(self, broker_url: str, timeout: float = 10.0):
        self.broker_url = broker_url
        self.timeout = timeout
        self.connection = None
        self.channel = None

    async def connect(self):
        """Establish connection to RabbitMQ"""
        try:
            self.connection = await asyncio.wait_for(
                aio_pika.connect_robust(self.broker_url),
                timeout=self.timeout,
            )
            self.channel = await self.connection.channel()
            logger.info("Connected to RabbitMQ", broker_url=self.broker_url)
        except asyncio.TimeoutError as e:
            logger.error("Timed out connecting to RabbitMQ", broker_url=self.broker_url)
            raise BrokerTimeoutError(
                ErrorCode.BROKER_TIMEOUT, "Timed out connecting to RabbitMQ", {"broker_url": self.broker_url}
            ) from e
        except AMQPError as e:
            logger.error("Failed to connect to RabbitMQ", error=str(e))
            raise BrokerProtocolError(ErrorCode.BROKER_PROTOCOL, str(e), {"broker_url": self.broker_url}) from e

    async def disconnect(self):
        """Close connection to RabbitMQ"""
        if self.connection:
            await self.connection.close()
            self.connection = None
            self.channel = None
            logger.info("Disconnected from RabbitMQ")

    async def _call(self, operation: str, queue_name: str, awaitable: Awaitable[T]) -> T:
        """Bound a broker call by the configured timeout and map broker errors."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Broker call timed out", operation=operation, queue=queue_name, timeout=self.timeout)
            raise BrokerTimeoutError(
                ErrorCode.BROKER_TIMEOUT,
                f"{operation} timed out on queue {queue_name}",
                {"queue": queue_name, "timeout": self.timeout},
            ) from e
        except AMQPError as e:
            logger.error("Broker call failed", operation=operation, queue=queue_name, error=str(e))
            raise BrokerProtocolError(
                ErrorCode.BROKER_PROTOCOL,
                f"{operation} failed on queue {queue_name}: {e}",
                {"queue": queue_name},
            ) from e

    async def _queue(self, queue_name: str) -> AbstractQueue:
        if not self.channel:
            raise BrokerError(ErrorCode.BROKER_NOT_CONNECTED, "Not connected to RabbitMQ")
        # Passive declare: the queue must already exist, it is owned by the pipeline
        return await self.channel.declare_queue(queue_name, durable=True, passive=True)

    async def purge_queue(self, queue_name: str) -> None:
        """Drop every pending message in a queue"""

        async def _purge():
            queue = await self._queue(queue_name)
            await queue.purge()

        await self._call("purge", queue_name, _purge())
        logger.debug("Purged queue", queue=queue_name)

    async def get_queue_message_count(self, queue_name: str) -> int:
        """Number of ready messages in a queue"""
        queue = await self._call("declare", queue_name, self._queue(queue_name))
        return queue.declaration_result.message_count or 0

    async def fetch_message(self, queue_name: str) -> Optional[AbstractIncomingMessage]:
        """Take the next message off a queue without waiting, or None if it is empty"""

        async def _fetch():
            queue = await self._queue(queue_name)
            return await queue.get(no_ack=False, fail=False)

        return await self._call("get", queue_name, _fetch())
