"""Custom exceptions for the slingshot_migrate package.

Built on the common exception framework from slingshot_common. The kinds
split "fix my configuration" failures from "the store let us down" failures
so callers can decide what deserves a retry:

- configuration problems (``MigrationConfigError``) are raised before any I/O
- connectivity problems (``StoreConnectionError``) abort the run
- per-document write failures (``BulkWriteError``) are recorded, never raised
  by the engine itself
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from slingshot_common import (
    ConfigurationError as BaseConfigurationError,
    NotFoundError,
    OperationError,
    ResourceError,
)

if TYPE_CHECKING:
    from .batch import BulkItemError


class MigrationConfigError(BaseConfigurationError):
    """Raised when a migration spec or host configuration is invalid."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(
            f"Configuration error for '{parameter}': {message}", context={"parameter": parameter}
        )


# Name used throughout the error-kind table
ConfigurationError = MigrationConfigError


class TargetMissingError(NotFoundError):
    """Raised when the target index does not exist at run start."""

    def __init__(self, index: str):
        self.index = index
        super().__init__(f"Target index '{index}' does not exist", context={"index": index})


class StoreConnectionError(ResourceError):
    """Raised on transport or connectivity failure during a store call."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(
            f"Connection failure during '{operation}': {message}", context={"operation": operation}
        )


class StoreOperationError(OperationError):
    """Raised when the store rejects a call for a non-connectivity reason."""

    def __init__(self, operation: str, message: str, status: int | None = None):
        self.operation = operation
        self.status = status
        super().__init__(
            f"Store operation '{operation}' failed: {message}",
            context={"operation": operation, "status": status},
        )


class CursorExpiredError(OperationError):
    """Raised when a scroll token is invalid or has expired."""

    def __init__(self, scroll_id: str | None, message: str = "scroll context is gone"):
        self.scroll_id = scroll_id
        super().__init__(f"Scroll cursor expired: {message}", context={"scroll_id": scroll_id})


class TransformError(OperationError):
    """Raised when the user transform fails or returns an invalid result."""

    def __init__(self, doc_id: str | None, message: str):
        self.doc_id = doc_id
        super().__init__(
            f"Transform failed for document '{doc_id}': {message}", context={"doc_id": doc_id}
        )


class BulkWriteError(OperationError):
    """Describes item-level failures reported by one bulk call.

    The orchestrator records these in the run statistics and keeps going;
    only an outright transport failure on the bulk call is fatal.
    """

    def __init__(self, index: str, items: list[BulkItemError]):
        self.index = index
        self.items = items
        ids = ", ".join(str(item.doc_id) for item in items[:10])
        if len(items) > 10:
            ids += ", ..."
        super().__init__(
            f"{len(items)} bulk item(s) failed on '{index}': {ids}",
            context={"index": index, "failed_ids": [item.doc_id for item in items]},
        )


class MappingConflictError(OperationError):
    """Raised when the schema cannot be fetched or applied during reconciliation."""

    def __init__(self, index: str, message: str):
        self.index = index
        super().__init__(
            f"Mapping reconciliation failed for '{index}': {message}", context={"index": index}
        )


def attach_stats(error: Exception, stats: Any) -> Exception:
    """Attach partial run statistics to an error that aborted a run."""
    error.stats = stats  # type: ignore[attr-defined]
    context = getattr(error, "context", None)
    if isinstance(context, dict):
        context["stats"] = stats.to_dict()
    return error


__all__ = [
    "BulkWriteError",
    "ConfigurationError",
    "CursorExpiredError",
    "MappingConflictError",
    "MigrationConfigError",
    "StoreConnectionError",
    "StoreOperationError",
    "TargetMissingError",
    "TransformError",
    "attach_stats",
]
