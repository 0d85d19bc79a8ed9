from typing import List

from .database import DatabaseManager
from .models import Store

ADMIN_STORE_ID = 0


class StoreRepository:
    def __init__(self, db: DatabaseManager, table: str = "store"):
        self.db = db
        self.table = table

    async def get_stores(self) -> List[Store]:
        """All storefront stores, excluding the admin scope"""
        query = f"SELECT store_id, code, name FROM {self.table} WHERE store_id <> $1 ORDER BY store_id"
        rows = await self.db.fetch_all(query, ADMIN_STORE_ID)
        return [Store(store_id=row["store_id"], code=row["code"], name=row["name"]) for row in rows]
