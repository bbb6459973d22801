"""In-memory collection of attempt results for a load run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from callforge._internal.logging import get_logger
from callforge.metrics.models import RunSummary

if TYPE_CHECKING:
    from callforge.metrics.models import ExecutionResult

logger = get_logger("metrics.collector")


def _compute_latencies(
    elapsed: list[float],
) -> tuple[float, float, float, float, float]:
    """Compute latency statistics from a list of attempt durations.

    Args:
        elapsed: Attempt durations in seconds.

    Returns:
        Tuple of (min, avg, max, p50, p95).
    """
    if not elapsed:
        return (0.0, 0.0, 0.0, 0.0, 0.0)

    arr = np.array(elapsed, dtype=np.float64)
    p50, p95 = np.percentile(arr, [50.0, 95.0])

    return (
        float(np.min(arr)),
        float(np.mean(arr)),
        float(np.max(arr)),
        float(p50),
        float(p95),
    )


class ResultCollector:
    """Accumulates ``ExecutionResult`` objects drained from the result channel.

    Attributes:
        concurrency: Worker count reported in the summary.
    """

    def __init__(self, concurrency: int) -> None:
        """Initialize the collector.

        Args:
            concurrency: Worker count reported in the summary.
        """
        self.concurrency = concurrency
        self._results: list[ExecutionResult] = []

    def __len__(self) -> int:
        """Return the number of recorded results."""
        return len(self._results)

    @property
    def results(self) -> list[ExecutionResult]:
        """Return recorded results in arrival order."""
        return list(self._results)

    def record(self, result: ExecutionResult) -> None:
        """Record one attempt result.

        Args:
            result: The attempt result.
        """
        self._results.append(result)
        if not result.success:
            logger.debug("Attempt %d failed after %.3fs", result.index, result.elapsed)

    def summarize(self, total_time: float) -> RunSummary:
        """Build the run summary from everything recorded so far.

        Args:
            total_time: Wall-clock seconds for the whole run.

        Returns:
            The aggregated RunSummary.
        """
        succeeded = sum(1 for r in self._results if r.success)
        lat_min, lat_avg, lat_max, lat_p50, lat_p95 = _compute_latencies(
            [r.elapsed for r in self._results]
        )
        return RunSummary(
            concurrency=self.concurrency,
            total_time=total_time,
            total=len(self._results),
            succeeded=succeeded,
            failed=len(self._results) - succeeded,
            latency_min=lat_min,
            latency_avg=lat_avg,
            latency_max=lat_max,
            latency_p50=lat_p50,
            latency_p95=lat_p95,
        )
