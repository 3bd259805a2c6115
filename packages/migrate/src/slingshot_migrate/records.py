"""Documents read from the source and the results a transform hands back.

A transform receives a :class:`DocumentRecord` and must return one of:

- :class:`Skip` - drop the document, nothing is written
- :class:`Single` - write one document
- :class:`Many` - split the document into several target documents

Example:
    ```python
    def split_by_market(record: DocumentRecord) -> TransformResult:
        doc = record.to_dict()
        markets = doc.pop("markets", [])
        if not markets:
            return Skip()
        return Many([({**doc, "market": m}, f"{record.id}-{m}") for m in markets])
    ```
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DocumentRecord:
    """A document fetched from the source index.

    Treat it as read-only: use :meth:`to_dict` to get a private copy of the
    fields before reshaping them.
    """

    id: str
    fields: Mapping[str, Any]
    index: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_hit(cls, hit: Mapping[str, Any]) -> DocumentRecord:
        """Build a record from a search hit (``_id``/``_source``/``_index``)."""
        metadata = {k: v for k, v in hit.items() if k not in ("_id", "_source", "_index")}
        return cls(
            id=str(hit["_id"]),
            fields=hit.get("_source") or {},
            index=hit.get("_index"),
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the document fields."""
        return copy.deepcopy(dict(self.fields))

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def __contains__(self, name: str) -> bool:
        return name in self.fields


class TransformResult:
    """Base class of the values a transform may return."""

    def operations(self, default_id: str) -> list[tuple[dict[str, Any], str]]:
        """Expand into ``(document, id)`` write operations.

        Args:
            default_id: Identifier of the source document, used for
                sub-records that do not supply their own

        Returns:
            Ordered list of documents to write with their identifiers
        """
        raise NotImplementedError


@dataclass(frozen=True)
class Skip(TransformResult):
    """Drop the source document; contributes zero writes."""

    reason: str | None = None

    def operations(self, default_id: str) -> list[tuple[dict[str, Any], str]]:
        return []


@dataclass(frozen=True)
class Single(TransformResult):
    """Write one document, under ``id`` or the source identifier."""

    document: dict[str, Any]
    id: str | None = None

    def __post_init__(self):
        if not isinstance(self.document, Mapping):
            raise TypeError(
                f"Single document must be a mapping, got {type(self.document).__name__}"
            )

    def operations(self, default_id: str) -> list[tuple[dict[str, Any], str]]:
        return [(self.document, str(self.id) if self.id is not None else default_id)]


@dataclass(frozen=True)
class Many(TransformResult):
    """Write several documents for one source document.

    Items are ``(document, id)`` pairs or :class:`Single` values. A missing
    id falls back to the source document id; supply explicit ids or the
    sub-records will overwrite each other in the target.
    """

    items: tuple[Single, ...]

    def __init__(self, items: Iterable[Single | tuple[dict[str, Any], str | None]]):
        normalized = []
        for item in items:
            if isinstance(item, Single):
                normalized.append(item)
            elif isinstance(item, tuple) and len(item) == 2:
                normalized.append(Single(*item))
            else:
                raise TypeError(
                    f"Many items must be Single or (document, id) pairs, got {type(item).__name__}"
                )
        object.__setattr__(self, "items", tuple(normalized))

    def operations(self, default_id: str) -> list[tuple[dict[str, Any], str]]:
        ops: list[tuple[dict[str, Any], str]] = []
        for item in self.items:
            ops.extend(item.operations(default_id))
        return ops

    def __len__(self) -> int:
        return len(self.items)
