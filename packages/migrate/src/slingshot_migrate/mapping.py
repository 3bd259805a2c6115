"""Schema (mapping) reconciliation before any data is copied.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, TYPE_CHECKING

from slingshot_common import SlingshotError

from .exceptions import MappingConflictError, StoreConnectionError

if TYPE_CHECKING:
    from .spec import MigrationSpec
    from .store import DocumentStore

logger = logging.getLogger(__name__)


def merge_mappings(current: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge mapping overrides into a current mapping.

    For every key of ``overrides``: when both sides hold mappings they are
    merged recursively, otherwise the override value replaces the current
    one. Keys absent from ``overrides`` are kept as they are. Neither input
    is modified.

    Example:
        >>> merge_mappings(
        ...     {"properties": {"id": {"type": "long"}, "name": {"type": "text"}}},
        ...     {"properties": {"name": {"type": "keyword"}}},
        ... )
        {'properties': {'id': {'type': 'long'}, 'name': {'type': 'keyword'}}}
    """
    merged = copy.deepcopy(current)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_mappings(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class MappingReconciler:
    """Applies mapping overrides to the target index.

    The source index's current mapping is the base; the overrides from the
    spec are merged over it and the result is put on the target. Failing to
    read or apply the mapping is fatal: data must not flow into a target
    whose schema is not the one that was asked for.
    """

    def __init__(self, source_store: DocumentStore, target_store: DocumentStore | None = None):
        self.source_store = source_store
        self.target_store = target_store or source_store

    def reconcile(self, spec: MigrationSpec) -> bool:
        """Merge and apply the spec's mapping overrides.

        Returns:
            False when there is nothing to apply, True once the merged
            mapping has been acknowledged by the target

        Raises:
            MappingConflictError: If the mapping cannot be fetched or applied
            StoreConnectionError: If a store call fails on the transport
        """
        overrides = spec.mapping_overrides
        if not overrides:
            logger.info(f"No mapping changes required for {spec.target}")
            return False

        current = self._fetch(spec)
        if current:
            mapping = merge_mappings(current, overrides)
        else:
            mapping = copy.deepcopy(overrides)

        target = spec.target
        try:
            acknowledged = self.target_store.put_mapping(target.index, target.shape_tag, mapping)
        except StoreConnectionError:
            raise
        except SlingshotError as e:
            raise MappingConflictError(target.index, f"cannot apply mapping: {e}") from e
        if not acknowledged:
            raise MappingConflictError(target.index, "mapping update was not acknowledged")

        logger.info(f"Mapping successfully changed for {target}")
        return True

    def _fetch(self, spec: MigrationSpec) -> dict[str, Any]:
        source = spec.source
        try:
            return self.source_store.get_mapping(source.index, source.shape_tag) or {}
        except StoreConnectionError:
            raise
        except SlingshotError as e:
            raise MappingConflictError(source.index, f"cannot read mapping: {e}") from e
