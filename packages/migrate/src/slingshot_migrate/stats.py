"""Migration run statistics, kept apart from the migration logic.
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

try:
    import resource
except ImportError:  # not available on Windows
    resource = None  # type: ignore[assignment]


class RunStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def peak_memory_mb() -> float | None:
    """Peak resident memory of this process in MB, if the platform reports it."""
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(peak / divisor, 2)


@dataclass
class MigrationStats:
    """Counters and timings for one migration run.

    The orchestrator owns one instance per run and threads it explicitly
    through the run; nothing else mutates it.
    """

    total: int | None = None
    docs_read: int = 0
    docs_written: int = 0
    docs_skipped: int = 0
    operations_queued: int = 0
    batches_flushed: int = 0
    batch_error_counts: list[int] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    status: RunStatus = RunStatus.PENDING
    failure: str | None = None
    mapping_applied: bool = False
    start_time: float | None = None
    end_time: float | None = None
    peak_memory_mb: float | None = None

    def start(self) -> MigrationStats:
        """Mark the run as started.

        Returns:
            Self for chaining
        """
        self.start_time = time.time()
        self.status = RunStatus.RUNNING
        return self

    def finish(self, error: BaseException | None = None) -> MigrationStats:
        """Mark the run as finished, failed when ``error`` is given.

        Returns:
            Self for chaining
        """
        self.end_time = time.time()
        self.peak_memory_mb = peak_memory_mb()
        if error is None:
            self.status = RunStatus.SUCCEEDED
        else:
            self.status = RunStatus.FAILED
            self.failure = f"{type(error).__name__}: {error}"
        return self

    @property
    def duration(self) -> float:
        """Run duration in seconds, or 0 if not started."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time else time.time()
        return end - self.start_time

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCEEDED

    @property
    def percent(self) -> float:
        """Share of matched source documents read so far (0-100)."""
        if not self.total:
            return 0.0
        return (self.docs_read / self.total) * 100

    def record_read(self, count: int = 1) -> None:
        self.docs_read += count

    def record_skip(self) -> None:
        self.docs_skipped += 1

    def record_queued(self, count: int) -> None:
        self.operations_queued += count

    def record_flush(self, applied: int, failed_items: list[dict[str, Any]]) -> None:
        """Record the outcome of one bulk flush.

        Args:
            applied: Number of operations the store applied
            failed_items: One entry per failed item (``doc_id``, ``status``, ``reason``)
        """
        self.batches_flushed += 1
        self.docs_written += applied
        self.batch_error_counts.append(len(failed_items))
        for item in failed_items:
            self.errors.append({**item, "batch": self.batches_flushed})

    def get_summary(self) -> str:
        """Human-readable summary of the run."""
        lines = [
            f"Migration {self.status.value}",
            f"Read: {self.docs_read}" + (f"/{self.total}" if self.total is not None else "")
            + f" | Written: {self.docs_written} | Skipped: {self.docs_skipped}",
            f"Batches: {self.batches_flushed} | Errors: {self.error_count}",
        ]
        if self.duration > 0:
            rate = self.docs_read / self.duration
            lines.append(f"Duration: {self.duration:.2f}s | Rate: {rate:.1f} docs/s")
        if self.peak_memory_mb is not None:
            lines.append(f"Peak memory: {self.peak_memory_mb}MB")
        if self.failure:
            lines.append(f"Failure: {self.failure}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to a dictionary for structured logging."""
        return {
            "status": self.status.value,
            "total": self.total,
            "docs_read": self.docs_read,
            "docs_written": self.docs_written,
            "docs_skipped": self.docs_skipped,
            "operations_queued": self.operations_queued,
            "batches_flushed": self.batches_flushed,
            "batch_error_counts": list(self.batch_error_counts),
            "errors": list(self.errors),
            "mapping_applied": self.mapping_applied,
            "failure": self.failure,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "peak_memory_mb": self.peak_memory_mb,
        }

    def __str__(self) -> str:
        return self.get_summary()
