"""Alias cutover from the source index to the target index.

The switch is two separate store calls, attach on the target then detach
from the source. It is not atomic: between the two calls a reader can see
the alias on both indices, and if the second call fails the alias stays on
both until the switch is run again. Each step checks membership first, so
re-running after a partial failure converges to "alias only on target".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .spec import MigrationSpec
    from .store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AliasSwitchResult:
    alias: str
    attached: bool
    detached: bool

    @property
    def changed(self) -> bool:
        return self.attached or self.detached


class AliasSwitcher:
    """Moves an alias from the source index to the target index.

    The alias is attached through the target store and detached through the
    source store, so a cross-cluster migration moves it on each cluster.
    """

    def __init__(self, source_store: DocumentStore, target_store: DocumentStore | None = None):
        self.source_store = source_store
        self.target_store = target_store or source_store

    def switch(self, alias: str, spec: MigrationSpec) -> AliasSwitchResult:
        """Attach ``alias`` to the target index, then detach it from the source.

        Raises:
            StoreConnectionError: If a store call fails; run again to resume
        """
        source_index = spec.source.index
        target_index = spec.target.index

        attached = False
        if target_index not in self.target_store.get_alias(alias):
            self.target_store.add_alias(target_index, alias)
            attached = True
            logger.info(f"Alias '{alias}' attached to '{target_index}'")

        detached = False
        if source_index != target_index and source_index in self.source_store.get_alias(alias):
            self.source_store.remove_alias(source_index, alias)
            detached = True
            logger.info(f"Alias '{alias}' detached from '{source_index}'")

        if not attached and not detached:
            logger.info(f"Alias '{alias}' already points at '{target_index}' only")
        return AliasSwitchResult(alias=alias, attached=attached, detached=detached)

    def switch_all(self, spec: MigrationSpec) -> list[AliasSwitchResult]:
        """Switch every alias listed in the spec, in order."""
        return [self.switch(alias, spec) for alias in spec.aliases]
