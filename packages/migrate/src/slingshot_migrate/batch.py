"""Accumulates transformed documents and writes them with bulk requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .exceptions import BulkWriteError
from .spec import BulkAction

if TYPE_CHECKING:
    from .records import TransformResult
    from .spec import BulkConfig, EndpointSpec
    from .store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class BulkBatch:
    """Ordered (action header, payload) pairs bound for one target endpoint."""

    target: EndpointSpec
    pairs: list[tuple[dict[str, Any], dict[str, Any] | None]] = field(default_factory=list)

    def append(self, header: dict[str, Any], payload: dict[str, Any] | None) -> None:
        self.pairs.append((header, payload))

    def to_operations(self) -> list[dict[str, Any]]:
        """Flatten into a bulk request body (headers and payloads interleaved)."""
        body: list[dict[str, Any]] = []
        for header, payload in self.pairs:
            body.append(header)
            if payload is not None:
                body.append(payload)
        return body

    def ids(self) -> list[str]:
        return [next(iter(header.values()))["_id"] for header, _ in self.pairs]

    def __len__(self) -> int:
        return len(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)


@dataclass
class BulkItemError:
    """One document the store refused to write."""

    doc_id: str | None
    status: int | None
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"doc_id": self.doc_id, "status": self.status, "reason": self.reason}


@dataclass
class BulkResult:
    """Outcome of one flush.

    A transport failure never produces a BulkResult: the store raises
    StoreConnectionError instead, which aborts the run.
    """

    requested: int
    applied: int = 0
    errors: list[BulkItemError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def error(self, index: str) -> BulkWriteError | None:
        """Item-level failures as a BulkWriteError, or None when all applied."""
        if not self.errors:
            return None
        return BulkWriteError(index, self.errors)

    @classmethod
    def from_response(cls, response: dict[str, Any], ids: list[str]) -> BulkResult:
        """Parse a bulk response into applied count and per-item errors.

        Args:
            response: Store response (``errors`` flag and ``items`` list)
            ids: Identifiers of the sent operations, in request order
        """
        result = cls(requested=len(ids))
        items = response.get("items") or []
        if not response.get("errors") and len(items) in (0, len(ids)):
            result.applied = len(ids)
            return result

        for position, item in enumerate(items):
            outcome = next(iter(item.values()), {}) if item else {}
            status = outcome.get("status")
            error = outcome.get("error")
            if error or (status is not None and status >= 300):
                doc_id = outcome.get("_id")
                if doc_id is None and position < len(ids):
                    doc_id = ids[position]
                result.errors.append(
                    BulkItemError(doc_id=doc_id, status=status, reason=_error_reason(error, status))
                )
            else:
                result.applied += 1

        # every sent operation is either applied or reported
        for doc_id in ids[len(items):]:
            result.errors.append(
                BulkItemError(doc_id=doc_id, status=None, reason="no item status in bulk response")
            )
        return result


class BatchAccumulator:
    """Buffers write operations and flushes them through the target store.

    The batch never holds more than ``max_batch_size`` operations: ``add``
    flushes as soon as the running operation count reaches a multiple of the
    size, even in the middle of expanding a ``Many`` result. Whatever is
    left at the end of the run is sent by :meth:`drain`. Without a
    ``max_batch_size`` the orchestrator drains once per page.
    """

    def __init__(self, store: DocumentStore, target: EndpointSpec, bulk: BulkConfig):
        self.store = store
        self.target = target
        self.bulk = bulk
        self.batch = BulkBatch(target)
        self.total_operations = 0
        self.flush_count = 0

    @property
    def max_batch_size(self) -> int | None:
        return self.bulk.max_batch_size

    @property
    def pending(self) -> int:
        return len(self.batch)

    def add(self, result: TransformResult, default_id: str) -> list[BulkResult]:
        """Append the write operations of one transform result.

        ``Many`` is expanded into its items; ``Skip`` adds nothing.

        Args:
            result: Transform output for one source document
            default_id: Source document id, used when an item has none

        Returns:
            Results of any flushes triggered while adding
        """
        flushed = []
        for document, doc_id in result.operations(default_id):
            header, payload = self._build_pair(document, doc_id)
            self.batch.append(header, payload)
            self.total_operations += 1
            if self.should_flush():
                flushed.append(self.flush())
        return flushed

    def should_flush(self) -> bool:
        """True when the batch holds a full ``max_batch_size`` of operations."""
        if self.max_batch_size is None:
            return False
        return len(self.batch) >= self.max_batch_size

    def flush(self) -> BulkResult:
        """Send the current batch as one bulk call and start a new one.

        Raises:
            StoreConnectionError: If the bulk call itself fails
        """
        batch, self.batch = self.batch, BulkBatch(self.target)
        if not batch:
            return BulkResult(requested=0)

        ids = batch.ids()
        response = self.store.bulk(self.target.index, self.target.shape_tag, batch.to_operations())
        self.flush_count += 1
        result = BulkResult.from_response(response, ids)
        logger.info(
            f"Bulk {self.bulk.action.value} of {len(batch)} doc(s) into {self.target}: "
            f"{result.applied} applied, {len(result.errors)} failed"
        )
        return result

    def drain(self) -> BulkResult | None:
        """Flush whatever remains; None when the batch is already empty."""
        if not self.batch:
            return None
        return self.flush()

    def _build_pair(
        self, document: dict[str, Any], doc_id: str
    ) -> tuple[dict[str, Any], dict[str, Any] | None]:
        action = self.bulk.action
        header = {action.value: {"_index": self.target.index, "_id": doc_id}}
        if action is BulkAction.DELETE:
            return header, None
        if action is BulkAction.UPDATE:
            return header, {"doc": document}
        return header, document


def _error_reason(error: Any, status: int | None) -> str:
    if isinstance(error, dict):
        kind = error.get("type", "error")
        reason = error.get("reason", "")
        return f"{kind}: {reason}" if reason else kind
    if error:
        return str(error)
    return f"status {status}"
