"""Slingshot document migration engine.

Copies documents from a source index to a target index through a
user-supplied transform, reconciling the target mapping first and optionally
moving aliases once the copy is done.

Example:
    ```python
    from slingshot_migrate import MigrationSpec, MigrationOrchestrator, Single
    from slingshot_migrate.backends import ElasticsearchStore

    spec = MigrationSpec.from_dict({
        "source": {"index": "sale", "type": "details"},
        "target": {"index": "sale_v2", "type": "details"},
        "bulk": {"batch_size": 500},
    })

    def add_currency(record):
        return Single({**record.to_dict(), "currency": "EUR"})

    with ElasticsearchStore({"hosts": ["http://localhost:9200"]}) as store:
        stats = MigrationOrchestrator(store).run(spec, add_currency)
        print(stats)
    ```
"""

__version__ = "1.0.0"

from .alias import AliasSwitcher, AliasSwitchResult
from .batch import BatchAccumulator, BulkBatch, BulkItemError, BulkResult
from .exceptions import (
    BulkWriteError,
    ConfigurationError,
    CursorExpiredError,
    MappingConflictError,
    MigrationConfigError,
    StoreConnectionError,
    StoreOperationError,
    TargetMissingError,
    TransformError,
)
from .factory import HostsConfig, connect_stores, create_store
from .mapping import MappingReconciler, merge_mappings
from .orchestrator import MigrationOrchestrator, run_migration
from .records import DocumentRecord, Many, Single, Skip, TransformResult
from .scroll import CursorState, Page, ScrollCursorManager, ScrollState
from .spec import BulkAction, BulkConfig, EndpointSpec, MigrationSpec, PagingConfig, PagingMode
from .stats import MigrationStats, RunStatus
from .store import DocumentStore, ScrollPage
from .transforms import identity, load_transform, versioned

__all__ = [
    # Engine
    "MigrationOrchestrator",
    "run_migration",
    "ScrollCursorManager",
    "ScrollState",
    "CursorState",
    "Page",
    "BatchAccumulator",
    "BulkBatch",
    "BulkResult",
    "BulkItemError",
    "MappingReconciler",
    "merge_mappings",
    "AliasSwitcher",
    "AliasSwitchResult",
    # Spec and records
    "MigrationSpec",
    "EndpointSpec",
    "BulkConfig",
    "BulkAction",
    "PagingConfig",
    "PagingMode",
    "DocumentRecord",
    "TransformResult",
    "Skip",
    "Single",
    "Many",
    "MigrationStats",
    "RunStatus",
    # Stores
    "DocumentStore",
    "ScrollPage",
    "HostsConfig",
    "connect_stores",
    "create_store",
    # Transforms
    "identity",
    "versioned",
    "load_transform",
    # Errors
    "BulkWriteError",
    "ConfigurationError",
    "CursorExpiredError",
    "MappingConflictError",
    "MigrationConfigError",
    "StoreConnectionError",
    "StoreOperationError",
    "TargetMissingError",
    "TransformError",
]
