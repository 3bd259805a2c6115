"""Migration orchestrator: scroll the source, transform, bulk-write the target.
"""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING

from slingshot_common import SlingshotError

from .batch import BatchAccumulator
from .exceptions import MigrationConfigError, TargetMissingError, TransformError, attach_stats
from .mapping import MappingReconciler
from .records import TransformResult
from .scroll import ScrollCursorManager
from .stats import MigrationStats, peak_memory_mb

if TYPE_CHECKING:
    from collections.abc import Callable
    from .batch import BulkResult
    from .records import DocumentRecord
    from .spec import MigrationSpec
    from .store import DocumentStore

    Transform = Callable[[DocumentRecord], TransformResult]

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """Runs one migration from a source store to a target store.

    Source and target are injected separately; pass the same store twice
    (or omit ``target_store``) when both indices live on one cluster.

    A run is strictly sequential: a page is fetched, each of its documents
    is transformed and queued, full batches are flushed, then the next page
    is fetched. Configuration and connectivity errors abort the run;
    documents the target refuses are recorded in the stats and the run
    carries on.
    """

    def __init__(self, source_store: DocumentStore, target_store: DocumentStore | None = None):
        self.source_store = source_store
        self.target_store = target_store or source_store

    def run(
        self,
        spec: MigrationSpec,
        transform: Transform,
        on_progress: Callable[[MigrationStats], None] | None = None,
    ) -> MigrationStats:
        """Migrate every source document matching the spec's filter query.

        Args:
            spec: What to migrate and how
            transform: Called with each source DocumentRecord; returns Skip,
                Single or Many
            on_progress: Optional callback invoked with the stats after
                every flush

        Returns:
            MigrationStats of the completed run

        Raises:
            MigrationConfigError: Before any I/O, if ``spec`` fails validation
            TargetMissingError: If the target index does not exist
            SlingshotError: Any fatal error; ``error.stats`` holds the
                partial statistics
        """
        spec.validate()
        if not callable(transform):
            raise MigrationConfigError("transform", "transform must be callable")

        stats = MigrationStats().start()
        logger.info(f"Migration starts: {spec.source} -> {spec.target}")
        try:
            self._run(spec, transform, stats, on_progress)
        except SlingshotError as e:
            stats.finish(error=e)
            logger.error(
                f"Migration aborted: {stats.failure}\n{stats.get_summary()}",
                extra={"migration_stats": stats.to_dict()},
            )
            raise attach_stats(e, stats)

        stats.finish()
        logger.info(
            f"Migration ends in {stats.duration:.3f}s\n{stats.get_summary()}",
            extra={"migration_stats": stats.to_dict()},
        )
        return stats

    def _run(
        self,
        spec: MigrationSpec,
        transform: Transform,
        stats: MigrationStats,
        on_progress: Callable[[MigrationStats], None] | None,
    ) -> None:
        if not self.target_store.index_exists(spec.target.index):
            raise TargetMissingError(spec.target.index)

        reconciler = MappingReconciler(self.source_store, self.target_store)
        stats.mapping_applied = reconciler.reconcile(spec)

        cursor = ScrollCursorManager(self.source_store, spec)
        accumulator = BatchAccumulator(self.target_store, spec.target, spec.bulk)

        def record(results: list[BulkResult]) -> None:
            for result in results:
                self._record_flush(spec, stats, result)
                if on_progress:
                    on_progress(stats)

        with closing(cursor.pages()) as pages:
            for page in pages:
                if stats.total is None:
                    stats.total = page.total
                for doc in page.records:
                    stats.record_read()
                    result = self._apply(transform, doc)
                    operations = len(result.operations(doc.id))
                    if operations == 0:
                        stats.record_skip()
                        continue
                    stats.record_queued(operations)
                    record(accumulator.add(result, doc.id))
                if accumulator.max_batch_size is None:
                    # no batch size: one bulk call per page
                    drained = accumulator.drain()
                    record([drained] if drained else [])

        drained = accumulator.drain()
        record([drained] if drained else [])

    def _apply(self, transform: Transform, doc: DocumentRecord) -> TransformResult:
        try:
            result = transform(doc)
        except SlingshotError:
            raise
        except Exception as e:
            raise TransformError(doc.id, f"{type(e).__name__}: {e}") from e
        if not isinstance(result, TransformResult):
            raise TransformError(
                doc.id,
                f"expected Skip, Single or Many, got {type(result).__name__}",
            )
        return result

    def _record_flush(self, spec: MigrationSpec, stats: MigrationStats, result: BulkResult) -> None:
        stats.record_flush(result.applied, [item.to_dict() for item in result.errors])
        error = result.error(spec.target.index)
        if error is not None:
            logger.warning(str(error), extra={"failed_items": [i.to_dict() for i in error.items]})
            for item in result.errors:
                logger.warning(f"Document '{item.doc_id}' not written: {item.reason}")
        logger.info(
            f"Batch {stats.batches_flushed}: {stats.docs_written} written / "
            f"{stats.docs_read} read - peak memory {peak_memory_mb()}MB"
        )


def run_migration(
    source_store: DocumentStore,
    spec: MigrationSpec,
    transform: Transform,
    target_store: DocumentStore | None = None,
    on_progress: Callable[[MigrationStats], None] | None = None,
) -> MigrationStats:
    """Functional shortcut for ``MigrationOrchestrator(...).run(...)``."""
    return MigrationOrchestrator(source_store, target_store).run(spec, transform, on_progress)
