from .resources import DataSourceKey


class StorageState:
    """Resolves the live data source name for a (store, entity type) key.

    Names are ``{prefix}_{store_code}_{entity_type}``, or
    ``{prefix}_{entity_type}`` for store-independent entity types.
    """

    def __init__(self, prefix: str = "storefront"):
        self.prefix = prefix

    def current_data_source_name(self, key: DataSourceKey) -> str:
        parts = [self.prefix, key.store_code, key.entity_type.value]
        return "_".join(part for part in parts if part).lower()
