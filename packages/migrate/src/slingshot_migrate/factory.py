"""Build the source and target stores from the ``hosts`` configuration.

The engine never decides whether source and target share a connection;
this module does, and hands the orchestrator two handles. When the target
host is absent or equal to the source host the same store is returned for
both sides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .backends import BACKENDS
from .exceptions import MigrationConfigError

if TYPE_CHECKING:
    from .store import DocumentStore

logger = logging.getLogger(__name__)

_CONNECTION_KEYS = ("source", "target", "from", "to", "backend")


@dataclass(frozen=True)
class HostsConfig:
    """Where the source and target clusters live."""

    source: str
    target: str | None = None
    backend: str = "elasticsearch"
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def shared(self) -> bool:
        """True when source and target are the same cluster."""
        return not self.target or self.target == self.source

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> HostsConfig:
        """Create from the ``hosts`` configuration section.

        ``from``/``to`` are accepted for ``source``/``target``; every other
        key is passed to the backend as a client option.

        Raises:
            MigrationConfigError: If the source host is missing
        """
        if not isinstance(data, dict):
            raise MigrationConfigError("hosts", "hosts section must be a mapping")
        source = data.get("source", data.get("from"))
        if not source:
            raise MigrationConfigError("hosts.source", "source host is required")
        backend = data.get("backend", "elasticsearch")
        if backend not in BACKENDS:
            raise MigrationConfigError(
                "hosts.backend",
                f"unknown backend '{backend}' (available: {', '.join(sorted(BACKENDS))})",
            )
        return cls(
            source=str(source),
            target=str(data.get("target", data.get("to")) or "") or None,
            backend=backend,
            options={k: v for k, v in data.items() if k not in _CONNECTION_KEYS},
        )


def create_store(backend: str, config: dict[str, Any] | None = None) -> DocumentStore:
    """Instantiate a store by backend name."""
    try:
        store_class = BACKENDS[backend]
    except KeyError:
        raise MigrationConfigError("backend", f"unknown backend '{backend}'") from None
    return store_class.from_config(config or {})


def connect_stores(hosts: HostsConfig | dict[str, Any]) -> tuple[DocumentStore, DocumentStore]:
    """Create ``(source_store, target_store)``, sharing one store when possible."""
    if isinstance(hosts, dict):
        hosts = HostsConfig.from_dict(hosts)

    source = create_store(hosts.backend, {**hosts.options, "hosts": [hosts.source]})
    if hosts.shared:
        logger.debug(f"Source and target share {hosts.source}")
        return source, source

    target = create_store(hosts.backend, {**hosts.options, "hosts": [hosts.target]})
    logger.debug(f"Source {hosts.source}, target {hosts.target}")
    return source, target
