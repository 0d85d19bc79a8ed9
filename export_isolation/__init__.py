"""
Test isolation for the storefront export pipeline.

Resets queues, document sources, feed tables and indexer modes around every
test, drains queue consumers synchronously before assertions, and compares
pipeline output structurally.
"""

from .comparator import ComparisonDiff, DiffEntry, DiffKind, MISSING, MappingKey, StructuralComparator, format_path
from .consumers import Consumer, QueueConsumerRunner
from .drain import DrainCoordinator
from .errors import (
    DataSourceNotFound,
    DrainTimeoutError,
    ErrorCode,
    HarnessError,
    InfrastructureFault,
    StructuralMismatch,
)
from .fixture import IsolationContext, IsolationProtocol, open_context
from .models import ResidualState, Store
from .orchestrator import ResetOrchestrator
from .resources import (
    FEEDS,
    PER_STORE_ENTITY_TYPES,
    QUEUES,
    DataSourceKey,
    EntityType,
    ExecutionMode,
)

__all__ = [
    # Resources
    "FEEDS",
    "QUEUES",
    "PER_STORE_ENTITY_TYPES",
    "DataSourceKey",
    "EntityType",
    "ExecutionMode",
    "Store",
    "ResidualState",

    # Orchestration
    "ResetOrchestrator",
    "DrainCoordinator",
    "Consumer",
    "QueueConsumerRunner",
    "IsolationContext",
    "IsolationProtocol",
    "open_context",

    # Comparison
    "StructuralComparator",
    "ComparisonDiff",
    "DiffEntry",
    "DiffKind",
    "MISSING",
    "MappingKey",
    "format_path",

    # Errors
    "ErrorCode",
    "HarnessError",
    "InfrastructureFault",
    "DataSourceNotFound",
    "DrainTimeoutError",
    "StructuralMismatch",
]
