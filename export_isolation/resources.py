"""
Fixed topology of the storefront export pipeline: feed tables, export queues,
indexers and the per-(store, entity type) addressing of document sources.

Changing the pipeline's feed/queue topology means updating this module only.
"""
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class EntityType(str, Enum):
    """Entity types exported into document sources"""

    REVIEW = "review"
    RATING_METADATA = "rating_metadata"
    CATEGORY = "category"
    PRODUCT = "product"


class ExecutionMode(str, Enum):
    """Transport used to exercise the pipeline under test"""

    QUEUED = "queued"
    DIRECT = "direct"

    @property
    def uses_queues(self) -> bool:
        return self is ExecutionMode.QUEUED

    @classmethod
    def parse(cls, value: str) -> "ExecutionMode":
        """Accept both mode names and legacy web API adapter names (rest/soap)."""
        normalized = (value or "").strip().lower()
        aliases = {"rest": cls.QUEUED, "soap": cls.DIRECT}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown execution mode: {value!r}") from None


FEEDS: Tuple[str, ...] = (
    "catalog_data_exporter_categories",
    "catalog_data_exporter_products",
    "catalog_data_exporter_product_reviews",
    "catalog_data_exporter_rating_metadata",
)

QUEUES: Tuple[str, ...] = (
    "catalog.category.export.queue",
    "catalog.product.export.queue",
    "export.product.reviews.queue",
    "export.rating.metadata.queue",
)

# One indexer per feed, registered under the feed's name
INDEXERS: Tuple[str, ...] = FEEDS

STORE_INDEPENDENT_ENTITY_TYPE = EntityType.REVIEW

PER_STORE_ENTITY_TYPES: Tuple[EntityType, ...] = (
    EntityType.RATING_METADATA,
    EntityType.CATEGORY,
    EntityType.PRODUCT,
)


class DataSourceKey(BaseModel):
    """Address of one document source: store scope plus entity type."""

    model_config = ConfigDict(frozen=True)

    store_code: Optional[str] = None
    entity_type: EntityType

    @model_validator(mode="after")
    def _check_scope(self) -> "DataSourceKey":
        if self.entity_type is STORE_INDEPENDENT_ENTITY_TYPE and self.store_code is not None:
            raise ValueError(f"{self.entity_type.value} sources are store-independent")
        if self.entity_type is not STORE_INDEPENDENT_ENTITY_TYPE and not self.store_code:
            raise ValueError(f"{self.entity_type.value} sources require a store code")
        return self

    @classmethod
    def review(cls) -> "DataSourceKey":
        return cls(entity_type=STORE_INDEPENDENT_ENTITY_TYPE)


def data_source_keys(store_codes: Iterable[str]) -> Iterator[DataSourceKey]:
    """Yield every document source key for the given stores.

    The store-independent key comes first and exactly once, followed by one
    key per (per-store entity type, store) pair.
    """
    codes = list(store_codes)
    yield DataSourceKey.review()
    for entity_type in PER_STORE_ENTITY_TYPES:
        for code in codes:
            yield DataSourceKey(store_code=code, entity_type=entity_type)
