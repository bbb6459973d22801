"""Rich rendering of the load-run summary block."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from callforge.metrics.models import RunSummary


def build_summary_table(summary: RunSummary) -> Table:
    """Build the execution summary table for a load run.

    Success and failure percentages are shown only when at least one
    attempt failed.

    Args:
        summary: Completed run summary.

    Returns:
        Formatted Rich Table.
    """
    table = Table(
        title="Execution Summary",
        show_header=True,
        header_style="bold green",
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Concurrency", str(summary.concurrency))
    table.add_row("Total execution time", f"{summary.total_time:.3f}s")
    table.add_row("Executed requests", str(summary.total))
    if summary.failed > 0:
        table.add_row("Successful requests", f"{summary.succeeded} ({summary.success_rate * 100:.0f}%)")
        table.add_row("Failed requests", f"{summary.failed} ({summary.error_rate * 100:.0f}%)")
    else:
        table.add_row("Successful requests", str(summary.succeeded))
        table.add_row("Failed requests", str(summary.failed))

    if summary.total > 0:
        table.add_row(
            "Average response time",
            f"{summary.latency_avg:.3f}s  (min: {summary.latency_min:.3f}s, max: {summary.latency_max:.3f}s)",
        )
        table.add_row("p50 / p95 response time", f"{summary.latency_p50:.3f}s / {summary.latency_p95:.3f}s")
        table.add_row("Requests per second", f"{summary.throughput:.2f}")

    return table


def print_summary(summary: RunSummary, console: Console | None = None) -> None:
    """Print the execution summary table.

    Args:
        summary: Completed run summary.
        console: Target console. Defaults to stdout.
    """
    (console or Console()).print(build_summary_table(summary))
