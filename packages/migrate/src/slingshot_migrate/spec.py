"""Migration spec: what to copy, where to, and how to page and write it.

A :class:`MigrationSpec` is immutable for the duration of a run. It is usually
built from the ``migration`` section of a config file with
:meth:`MigrationSpec.from_dict`, which also accepts the legacy option names (``from``/``to``,
``batchSize``, ``documentsBatch``, ``withScroll``).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import MigrationConfigError

DEFAULT_PAGE_SIZE = 1000
DEFAULT_SCROLL_TTL = "30s"
DEFAULT_SHAPE_TAG = "_doc"


class PagingMode(Enum):
    """How the source is paged."""

    CURSOR = "cursor"
    OFFSET = "offset"


class BulkAction(Enum):
    """Bulk write action applied to every transformed document."""

    INDEX = "index"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class EndpointSpec:
    """One side of a migration: an index plus its document type tag."""

    index: str
    shape_tag: str = DEFAULT_SHAPE_TAG
    page_size: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], side: str) -> EndpointSpec:
        if not isinstance(data, dict):
            raise MigrationConfigError(side, "endpoint must be a mapping")
        index = data.get("index") or data.get("id")
        if not index:
            raise MigrationConfigError(f"{side}.index", "index name is required")
        page_size = data.get("page_size", data.get("size"))
        if page_size is not None:
            page_size = _positive_int(page_size, f"{side}.size")
        return cls(
            index=str(index),
            shape_tag=str(data.get("type") or data.get("shape_tag") or DEFAULT_SHAPE_TAG),
            page_size=page_size,
        )

    def __str__(self) -> str:
        return f"{self.index}/{self.shape_tag}"


@dataclass(frozen=True)
class BulkConfig:
    """Bulk write settings; ``max_batch_size=None`` flushes once per page."""

    action: BulkAction = BulkAction.INDEX
    max_batch_size: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> BulkConfig:
        data = data or {}
        raw_action = data.get("action", BulkAction.INDEX.value)
        try:
            action = BulkAction(raw_action)
        except ValueError:
            choices = ", ".join(a.value for a in BulkAction)
            raise MigrationConfigError(
                "bulk.action", f"unknown action '{raw_action}' (expected one of: {choices})"
            ) from None
        size = data.get("max_batch_size", data.get("batch_size", data.get("batchSize")))
        if size is not None:
            size = _positive_int(size, "bulk.batch_size")
        return cls(action=action, max_batch_size=size)


@dataclass(frozen=True)
class PagingConfig:
    """Source paging: server-side scroll cursor, or one fixed offset page."""

    mode: PagingMode = PagingMode.CURSOR
    scroll_ttl: str = DEFAULT_SCROLL_TTL
    batch_number: int = 0
    batch_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PagingConfig:
        data = data or {}
        raw_mode = data.get("mode", PagingMode.CURSOR.value)
        try:
            mode = PagingMode(raw_mode)
        except ValueError:
            raise MigrationConfigError(
                "paging.mode", f"unknown mode '{raw_mode}' (expected 'cursor' or 'offset')"
            ) from None
        batch_number = data.get("batch_number", 0)
        if not isinstance(batch_number, int) or isinstance(batch_number, bool) or batch_number < 0:
            raise MigrationConfigError("paging.batch_number", "must be a non-negative integer")
        return cls(
            mode=mode,
            scroll_ttl=str(data.get("scroll_ttl", DEFAULT_SCROLL_TTL)),
            batch_number=batch_number,
            batch_size=_positive_int(data.get("batch_size", DEFAULT_PAGE_SIZE), "paging.batch_size"),
        )


@dataclass(frozen=True)
class MigrationSpec:
    """Everything the orchestrator needs to know about one migration run."""

    source: EndpointSpec
    target: EndpointSpec
    bulk: BulkConfig = field(default_factory=BulkConfig)
    paging: PagingConfig = field(default_factory=PagingConfig)
    mapping_overrides: dict[str, Any] | None = None
    filter_query: dict[str, Any] | None = None
    aliases: tuple[str, ...] = ()

    @property
    def page_size(self) -> int:
        """Documents requested per page."""
        if self.paging.mode is PagingMode.OFFSET:
            return self.paging.batch_size
        return self.source.page_size or DEFAULT_PAGE_SIZE

    def validate(self) -> None:
        """Check required fields; raises MigrationConfigError, performs no I/O."""
        if not isinstance(self.source, EndpointSpec) or not self.source.index:
            raise MigrationConfigError("source.index", "source index is required")
        if not isinstance(self.target, EndpointSpec) or not self.target.index:
            raise MigrationConfigError("target.index", "target index is required")
        if not self.source.shape_tag:
            raise MigrationConfigError("source.type", "source type tag is required")
        if not self.target.shape_tag:
            raise MigrationConfigError("target.type", "target type tag is required")
        if self.bulk.max_batch_size is not None and self.bulk.max_batch_size < 1:
            raise MigrationConfigError("bulk.batch_size", "must be a positive integer")
        if self.mapping_overrides is not None and not isinstance(self.mapping_overrides, dict):
            raise MigrationConfigError("mappings", "mapping overrides must be a mapping")
        if self.filter_query is not None and not isinstance(self.filter_query, dict):
            raise MigrationConfigError("query", "filter query must be a mapping")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationSpec:
        """Build a spec from a ``migration`` configuration section.

        Raises:
            MigrationConfigError: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise MigrationConfigError("migration", "migration section must be a mapping")

        source = data.get("source", data.get("from"))
        target = data.get("target", data.get("to"))
        if source is None:
            raise MigrationConfigError("source", "source endpoint is required")
        if target is None:
            raise MigrationConfigError("target", "target endpoint is required")

        paging_data = dict(data.get("paging") or {})
        documents_batch = data.get("documentsBatch")
        if data.get("withScroll") is False and documents_batch:
            paging_data.setdefault("mode", PagingMode.OFFSET.value)
            paging_data.setdefault("batch_number", documents_batch.get("batchNb", 0))
            paging_data.setdefault("batch_size", documents_batch.get("batchSize", DEFAULT_PAGE_SIZE))

        overrides = data.get("mappings", data.get("mapping"))
        aliases = data.get("aliases") or ()
        if isinstance(aliases, str):
            aliases = (aliases,)
        elif isinstance(aliases, dict):
            # legacy form: {"read": "barRead", "write": "barWrite"}
            aliases = tuple(aliases.values())

        spec = cls(
            source=EndpointSpec.from_dict(source, "source"),
            target=EndpointSpec.from_dict(target, "target"),
            bulk=BulkConfig.from_dict(data.get("bulk")),
            paging=PagingConfig.from_dict(paging_data),
            mapping_overrides=copy.deepcopy(overrides) if overrides else None,
            filter_query=copy.deepcopy(data.get("query") or data.get("filter_query")) or None,
            aliases=tuple(str(alias) for alias in aliases),
        )
        spec.validate()
        return spec

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": {"index": self.source.index, "type": self.source.shape_tag,
                       "size": self.source.page_size},
            "target": {"index": self.target.index, "type": self.target.shape_tag},
            "bulk": {"action": self.bulk.action.value, "batch_size": self.bulk.max_batch_size},
            "paging": {"mode": self.paging.mode.value, "scroll_ttl": self.paging.scroll_ttl,
                       "batch_number": self.paging.batch_number,
                       "batch_size": self.paging.batch_size},
            "mappings": copy.deepcopy(self.mapping_overrides),
            "query": copy.deepcopy(self.filter_query),
            "aliases": list(self.aliases),
        }


def _positive_int(value: Any, parameter: str) -> int:
    if isinstance(value, bool):
        raise MigrationConfigError(parameter, f"expected a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise MigrationConfigError(parameter, f"expected a positive integer, got {value!r}") from None
    if number < 1:
        raise MigrationConfigError(parameter, f"expected a positive integer, got {value!r}")
    return number
