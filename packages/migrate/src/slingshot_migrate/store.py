"""Abstract document-store interface consumed by the migration engine.

Backends implement :class:`DocumentStore` on top of a concrete client and
translate that client's failures into the package's error kinds:

- transport/connectivity failures -> ``StoreConnectionError``
- an unknown or expired scroll id -> ``CursorExpiredError``
- any other rejected call -> ``StoreOperationError``

All calls are blocking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ScrollPage:
    """One page of hits plus the cursor token that fetches the next one."""

    hits: list[dict[str, Any]] = field(default_factory=list)
    scroll_id: str | None = None
    total: int | None = None


class DocumentStore(ABC):
    """Synchronous document store (index-per-collection, alias aware)."""

    name: str = "store"

    @abstractmethod
    def open_scroll(
        self,
        index: str,
        shape_tag: str,
        query: dict[str, Any] | None,
        size: int,
        ttl: str,
    ) -> ScrollPage:
        """Run ``query`` and open a cursor; returns the first page and total hits."""

    @abstractmethod
    def scroll(self, scroll_id: str, ttl: str) -> ScrollPage:
        """Exchange a cursor token for the next page and a refreshed token."""

    @abstractmethod
    def clear_scroll(self, scroll_id: str) -> None:
        """Release a cursor."""

    @abstractmethod
    def search_page(
        self,
        index: str,
        shape_tag: str,
        query: dict[str, Any] | None,
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        """Bounded query: hits ``offset`` to ``offset + limit``."""

    @abstractmethod
    def bulk(
        self,
        index: str,
        shape_tag: str,
        operations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Send one bulk request.

        Args:
            index: Target index
            shape_tag: Target document type tag
            operations: Alternating action headers and payloads, in
                Elasticsearch bulk body order (``delete`` has no payload)

        Returns:
            ``{"errors": bool, "items": [{action: {"_id", "status", "error"?}}]}``
        """

    @abstractmethod
    def get_mapping(self, index: str, shape_tag: str) -> dict[str, Any]:
        """Current mapping of ``index``, or an empty dict if there is none."""

    @abstractmethod
    def put_mapping(self, index: str, shape_tag: str, mapping: dict[str, Any]) -> bool:
        """Apply ``mapping`` to ``index``; returns the acknowledged flag."""

    @abstractmethod
    def index_exists(self, index: str) -> bool:
        """Check if an index (or alias) exists."""

    @abstractmethod
    def create_index(self, index: str, body: dict[str, Any] | None = None) -> bool:
        """Create an index; returns the acknowledged flag."""

    @abstractmethod
    def get_alias(self, alias: str) -> set[str]:
        """Indices currently holding ``alias`` (empty when unknown)."""

    @abstractmethod
    def add_alias(self, index: str, alias: str) -> bool:
        """Attach ``alias`` to ``index``."""

    @abstractmethod
    def remove_alias(self, index: str, alias: str) -> bool:
        """Detach ``alias`` from ``index``."""

    def close(self) -> None:
        """Release the underlying client."""
        pass

    def __enter__(self) -> DocumentStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
