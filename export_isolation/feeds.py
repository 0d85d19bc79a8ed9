"""
Feed table access: unconditional truncation and row counting.
"""
import re

import asyncpg

from .database import DatabaseManager, rows_affected
from .errors import ErrorCode, FeedStoreError
from .logging_config import configure_logging

logger = configure_logging("export-isolation:feeds")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FeedTables:
    """Feed tables in the relational store, optionally behind a table prefix"""

    def __init__(self, db_manager: DatabaseManager, table_prefix: str = ""):
        self.db_manager = db_manager
        self.table_prefix = table_prefix

    def table_name(self, feed: str) -> str:
        name = f"{self.table_prefix}{feed}"
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid feed table name: {name!r}")
        return name

    async def delete_all(self, feed: str) -> int:
        """Delete every row of a feed table and return the number deleted."""
        table = self.table_name(feed)
        try:
            status = await self.db_manager.execute(f'DELETE FROM "{table}"')
        except asyncpg.PostgresError as e:
            raise FeedStoreError(
                ErrorCode.FEED_STORE_FAILED, f"Failed to clean feed {table}", {"error": str(e)}
            ) from e
        deleted = rows_affected(status)
        logger.debug("Cleaned feed table", table=table, rows=deleted)
        return deleted

    async def count_rows(self, feed: str) -> int:
        table = self.table_name(feed)
        try:
            count = await self.db_manager.fetch_val(f'SELECT COUNT(*) FROM "{table}"')
        except asyncpg.PostgresError as e:
            raise FeedStoreError(
                ErrorCode.FEED_STORE_FAILED, f"Failed to count feed {table}", {"error": str(e)}
            ) from e
        return int(count or 0)
