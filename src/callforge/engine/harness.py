"""Run an execution spec once, N times, or for a duration across workers."""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from callforge._internal.config import ExecutionConfig, OutputMode, RunMode
from callforge._internal.logging import get_logger
from callforge.dsl.assembler import build_execution_spec
from callforge.dsl.models import CustomHandlerSpec
from callforge.engine.dispatch import ExecutionOutcome, execute_spec
from callforge.metrics.collector import ResultCollector
from callforge.metrics.models import ExecutionResult, RunSummary
from callforge.metrics.report import print_summary

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from rich.console import Console

    from callforge._internal.config import RequestSettings
    from callforge.dsl.handlers import HandlerRegistry
    from callforge.dsl.models import CommandDefinition, ExecutionSpec

logger = get_logger("engine.harness")

SpecFactory = Callable[[], "ExecutionSpec"]


@dataclass(frozen=True)
class RunReport:
    """What a harness run hands back to its caller.

    Attributes:
        exit_code: 0 on success, 1 on any execution-level failure.
        outcome: The single outcome when the spec ran exactly once.
        summary: Aggregated results when the spec ran as a load run.
    """

    exit_code: int
    outcome: ExecutionOutcome | None = None
    summary: RunSummary | None = None


class LoadHarness:
    """Executes a spec according to an ``ExecutionConfig``.

    Mode selection: ``duration_seconds > 0`` runs until the deadline,
    otherwise ``count > 1`` runs exactly ``count`` attempts, otherwise the
    spec runs once and its outcome is returned for rendering.

    Load runs use ``concurrency`` worker tasks (0 is treated as 1) that
    share an attempt counter, a stop flag and a result queue. Each attempt
    builds a fresh spec from the factory. In duration mode a timer task
    sets the stop flag; attempts already started run to completion and are
    counted. Custom handler specs are never repeated or parallelized.

    Attributes:
        config: The execution options for this harness.
    """

    def __init__(
        self,
        build_spec: SpecFactory,
        config: ExecutionConfig | None = None,
        handlers: HandlerRegistry | None = None,
        *,
        console: Console | None = None,
    ) -> None:
        """Initialize the harness.

        Args:
            build_spec: Returns a freshly assembled spec for each attempt.
            config: Execution options. Defaults to ``ExecutionConfig()``.
            handlers: Registry consulted for custom handler specs.
            console: Console the load-run summary is printed to.
        """
        self._build_spec = build_spec
        self.config = config or ExecutionConfig()
        self._handlers = handlers
        self._console = console
        self._issued = 0

    @classmethod
    def for_command(
        cls,
        command: CommandDefinition,
        bindings: Mapping[str, str],
        selected: Collection[str],
        config: ExecutionConfig | None = None,
        handlers: HandlerRegistry | None = None,
        *,
        base_url: str | None = None,
        console: Console | None = None,
    ) -> LoadHarness:
        """Create a harness that re-assembles ``command`` for every attempt."""
        factory = functools.partial(
            build_execution_spec,
            command,
            dict(bindings),
            frozenset(selected),
            base_url,
        )
        return cls(factory, config, handlers, console=console)

    @property
    def attempts_started(self) -> int:
        """Return how many attempts the most recent run started."""
        return self._issued

    async def run(self) -> RunReport:
        """Execute the spec and return the exit code with outcome or summary.

        Returns:
            RunReport. ``outcome`` is set for single executions,
            ``summary`` for load runs.

        Raises:
            CallForgeError: From a single execution. Load runs never raise
                for a failed attempt; failures are counted instead.
        """
        mode = self.config.mode
        self._issued = 0
        spec = self._build_spec()

        if isinstance(spec, CustomHandlerSpec) and (
            mode is not RunMode.SINGLE or self.config.workers > 1
        ):
            if mode is RunMode.DURATION:
                logger.warning(
                    "Custom handlers cannot be executed with duration. Ignoring --duration option."
                )
            else:
                logger.warning(
                    "Custom handlers cannot be executed in parallel. "
                    "Ignoring --count and --concurrency options."
                )
            mode = RunMode.SINGLE

        if mode is RunMode.SINGLE:
            self._issued = 1
            outcome = await execute_spec(spec, self.config, self._handlers)
            return RunReport(exit_code=outcome.exit_code, outcome=outcome)

        summary = await self._run_load(mode)
        if summary.total > 1 and self.config.output_mode is not OutputMode.JSON:
            print_summary(summary, self._console)
        return RunReport(exit_code=summary.exit_code, summary=summary)

    def run_sync(self) -> RunReport:
        """Blocking form of ``run`` on a fresh event loop.

        Uses uvloop's event loop except on Windows.
        """
        if sys.platform == "win32":
            return asyncio.run(self.run())

        import uvloop

        return uvloop.run(self.run())

    async def _run_load(self, mode: RunMode) -> RunSummary:
        workers = self.config.workers
        target = self.config.count if mode is RunMode.COUNT else None

        if self.config.verbose:
            if mode is RunMode.DURATION:
                logger.info(
                    "Executing requests for %g seconds with concurrency %d",
                    self.config.duration_seconds,
                    workers,
                )
            else:
                logger.info("Executing %d requests with concurrency %d", target, workers)

        attempt_config = dataclasses.replace(
            self.config, output_mode=OutputMode.QUIET, verbose=False
        )
        settings = attempt_config.request_settings()
        stop = asyncio.Event()
        results: asyncio.Queue[ExecutionResult | None] = asyncio.Queue()
        collector = ResultCollector(concurrency=workers)

        start = time.monotonic()
        tasks = [
            asyncio.create_task(
                self._worker(mode, target, stop, results, attempt_config, settings),
                name=f"callforge-worker-{worker_id}",
            )
            for worker_id in range(workers)
        ]
        timer: asyncio.Task[None] | None = None
        if mode is RunMode.DURATION:
            timer = asyncio.create_task(
                self._stop_after(self.config.duration_seconds, stop),
                name="callforge-timer",
            )

        # Each worker puts one None when it exits.
        finished = 0
        while finished < workers:
            item = await results.get()
            if item is None:
                finished += 1
            else:
                collector.record(item)

        await asyncio.gather(*tasks)
        if timer is not None:
            await timer

        summary = collector.summarize(time.monotonic() - start)
        logger.debug(
            "Load run finished: total=%d, succeeded=%d, failed=%d",
            summary.total,
            summary.succeeded,
            summary.failed,
        )
        return summary

    def _claim(self, target: int | None) -> int | None:
        """Hand out the next attempt index, or None once ``target`` is reached.

        Runs without awaiting, so it is atomic on the event loop.
        """
        if target is not None and self._issued >= target:
            return None
        self._issued += 1
        return self._issued

    async def _worker(
        self,
        mode: RunMode,
        target: int | None,
        stop: asyncio.Event,
        results: asyncio.Queue[ExecutionResult | None],
        config: ExecutionConfig,
        settings: RequestSettings,
    ) -> None:
        try:
            while not (mode is RunMode.DURATION and stop.is_set()):
                index = self._claim(target)
                if index is None:
                    break
                results.put_nowait(await self._attempt(index, config, settings))
                # An attempt that fails before its first await never suspends.
                await asyncio.sleep(0)
        finally:
            results.put_nowait(None)

    async def _attempt(
        self,
        index: int,
        config: ExecutionConfig,
        settings: RequestSettings,
    ) -> ExecutionResult:
        start = time.monotonic()
        try:
            outcome = await execute_spec(self._build_spec(), config, self._handlers, settings=settings)
            success = outcome.success
        except Exception:
            logger.debug("Attempt %d failed", index, exc_info=True)
            success = False
        return ExecutionResult(index=index, elapsed=time.monotonic() - start, success=success)

    @staticmethod
    async def _stop_after(seconds: float, stop: asyncio.Event) -> None:
        await asyncio.sleep(seconds)
        stop.set()


async def run(
    build_spec: SpecFactory,
    config: ExecutionConfig | None = None,
    handlers: HandlerRegistry | None = None,
    *,
    console: Console | None = None,
) -> RunReport:
    """Run ``build_spec`` under ``config``. See ``LoadHarness``."""
    return await LoadHarness(build_spec, config, handlers, console=console).run()


def run_sync(
    build_spec: SpecFactory,
    config: ExecutionConfig | None = None,
    handlers: HandlerRegistry | None = None,
    *,
    console: Console | None = None,
) -> RunReport:
    """Blocking form of ``run``. See ``LoadHarness.run_sync``."""
    return LoadHarness(build_spec, config, handlers, console=console).run_sync()
