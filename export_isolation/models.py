from typing import Dict, Optional

from pydantic import BaseModel


class Store(BaseModel):
    code: str
    store_id: Optional[int] = None
    name: Optional[str] = None


class ResidualState(BaseModel):
    """Rows left in feed tables and messages left in export queues."""

    feed_rows: Dict[str, int] = {}
    queue_depths: Dict[str, int] = {}

    @property
    def is_clean(self) -> bool:
        return not any(self.feed_rows.values()) and not any(self.queue_depths.values())
