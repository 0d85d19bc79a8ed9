import asyncpg
from typing import Any, List, Optional

from .errors import ErrorCode, InfrastructureFault
from .logging_config import configure_logging

logger = configure_logging("export-isolation:database")


def rows_affected(status: str) -> int:
    """Parse the row count out of a command tag such as ``DELETE 12``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class DatabaseManager:
    """Async PostgreSQL access for feed tables, store records and indexer state"""

    def __init__(self, dsn: str, command_timeout: float = 60.0):
        self.dsn = dsn
        self.command_timeout = command_timeout
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create connection pool"""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=1,
            max_size=4,
            command_timeout=self.command_timeout,
            server_settings={"application_name": "export_isolation"},
        )
        logger.info("Connected to database")

    async def disconnect(self):
        """Close connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None

    def _require_pool(self) -> asyncpg.Pool:
        if not self.pool:
            raise InfrastructureFault(ErrorCode.DATABASE_NOT_CONNECTED, "Database not connected")
        return self.pool

    async def execute(self, query: str, *args) -> str:
        """Execute a query and return the command status"""
        async with self._require_pool().acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch_all(self, query: str, *args) -> List[asyncpg.Record]:
        async with self._require_pool().acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetch_val(self, query: str, *args) -> Any:
        async with self._require_pool().acquire() as conn:
            return await conn.fetchval(query, *args)
