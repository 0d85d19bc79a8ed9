from .database import DatabaseManager
from .logging_config import configure_logging

logger = configure_logging("export-isolation:indexer")

MODE_SCHEDULED = "enabled"
MODE_ON_SAVE = "disabled"


class PostgresIndexer:
    """Scheduling mode of one indexer, stored in the materialized-view state table"""

    def __init__(self, db: DatabaseManager, name: str, table: str = "mview_state"):
        self.db = db
        self.name = name
        self.table = table

    async def set_scheduled(self, scheduled: bool) -> None:
        mode = MODE_SCHEDULED if scheduled else MODE_ON_SAVE
        query = f"""
        INSERT INTO {self.table} (view_id, mode, updated)
        VALUES ($1, $2, NOW())
        ON CONFLICT (view_id) DO UPDATE SET mode = EXCLUDED.mode, updated = NOW()
        """
        await self.db.execute(query, self.name, mode)
        logger.debug("Set indexer mode", indexer=self.name, mode=mode)

    async def is_scheduled(self) -> bool:
        query = f"SELECT mode FROM {self.table} WHERE view_id = $1"
        mode = await self.db.fetch_val(query, self.name)
        return mode == MODE_SCHEDULED


class PostgresIndexerRegistry:
    def __init__(self, db: DatabaseManager, table: str = "mview_state"):
        self.db = db
        self.table = table

    async def load(self, name: str) -> PostgresIndexer:
        return PostgresIndexer(self.db, name, self.table)
