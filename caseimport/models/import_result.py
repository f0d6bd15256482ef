from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

"""Import result models for the case import tool.

ImportResult is the mutable accumulator owned by the orchestrator for one
run; the entry dataclasses are what it collects per row.
"""

__all__ = [
    "ImportState",
    "ImportPhase",
    "ImportProgress",
    "SuccessfulImport",
    "ClientNotFound",
    "RowError",
    "ImportResult",
    "BatchStatsAccumulator",
]


class ImportState(Enum):
    """Run lifecycle.

    idle -> validating -> processing -> (done | cancelled)
    idle/validating -> failed on setup errors
    """
    IDLE = "idle"
    VALIDATING = "validating"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ImportPhase(Enum):
    VALIDATING = "validating"
    PROCESSING = "processing"


@dataclass(frozen=True)
class ImportProgress:
    """Progress tuple pushed to the progress callback."""
    current: int  # rows settled so far
    total: int
    phase: ImportPhase
    current_batch: int  # 1-based, 0 before the first batch
    total_batches: int


@dataclass(frozen=True)
class SuccessfulImport:
    row_number: int
    title: str
    identifier: str  # CNR, else case number, else reference number
    client_name: str  # matched client name or "No client"


@dataclass(frozen=True)
class ClientNotFound:
    row_number: int
    client_name: str


@dataclass(frozen=True)
class RowError:
    row_number: int
    error: str


@dataclass
class ImportResult:
    """Append-only accumulator for a single import run.

    success_count + failure_count always equals the number of rows that
    settled; client_not_found entries are a subset of the successful rows.
    """
    total_rows: int = 0
    total_batches: int = 0
    success_count: int = 0
    failure_count: int = 0
    client_not_found_count: int = 0
    successful_imports: list[SuccessfulImport] = field(default_factory=list)
    clients_not_found: list[ClientNotFound] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    state: ImportState = ImportState.IDLE
    cancelled: bool = False
    started_at: datetime | None = None
    finished_at: datetime | None = None
    batch_stats: BatchStatsAccumulator = field(default_factory=lambda: BatchStatsAccumulator())

    def record_success(self, entry: SuccessfulImport) -> None:
        self.successful_imports.append(entry)
        self.success_count += 1

    def record_client_not_found(self, entry: ClientNotFound) -> None:
        self.clients_not_found.append(entry)
        self.client_not_found_count += 1

    def record_error(self, entry: RowError) -> None:
        self.errors.append(entry)
        self.failure_count += 1

    @property
    def processed_rows(self) -> int:
        return self.success_count + self.failure_count

    @property
    def elapsed_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def has_failures(self) -> bool:
        return self.failure_count > 0


class BatchStatsAccumulator:
    """Accumulate per-batch timings for the run summary."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 19th of 20 cut points

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
