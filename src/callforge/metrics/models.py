"""Result dataclasses for CallForge load runs."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ExecutionResult",
    "RunSummary",
]


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one attempt within a load run.

    Attributes:
        index: Attempt index, unique and increasing from 1 in claim order.
        elapsed: Wall-clock seconds the attempt took end to end.
        success: Whether the attempt finished with exit code 0.
    """

    index: int
    elapsed: float
    success: bool


@dataclass(frozen=True)
class RunSummary:
    """Aggregate of all attempts in a load run.

    Attributes:
        concurrency: Number of workers used.
        total_time: Wall-clock seconds for the whole run.
        total: Number of attempts executed.
        succeeded: Attempts that finished successfully.
        failed: Attempts that failed.
        latency_min: Fastest attempt in seconds.
        latency_avg: Mean attempt time in seconds.
        latency_max: Slowest attempt in seconds.
        latency_p50: Median attempt time in seconds.
        latency_p95: 95th percentile attempt time in seconds.
    """

    concurrency: int
    total_time: float
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    latency_min: float = 0.0
    latency_avg: float = 0.0
    latency_max: float = 0.0
    latency_p50: float = 0.0
    latency_p95: float = 0.0

    @property
    def success_rate(self) -> float:
        """Fraction of attempts that succeeded (0.0 to 1.0)."""
        return self.succeeded / self.total if self.total > 0 else 0.0

    @property
    def error_rate(self) -> float:
        """Fraction of attempts that failed (0.0 to 1.0)."""
        return self.failed / self.total if self.total > 0 else 0.0

    @property
    def throughput(self) -> float:
        """Attempts per second over the whole run."""
        return self.total / self.total_time if self.total_time > 0 else 0.0

    @property
    def exit_code(self) -> int:
        """Return 0 if no attempt failed, else 1."""
        return 0 if self.failed == 0 else 1
