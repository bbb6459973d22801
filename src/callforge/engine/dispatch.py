"""Run one ``ExecutionSpec`` to completion: a request, a scenario or a handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

from callforge._internal.config import ExecutionConfig, OutputMode
from callforge._internal.logging import get_logger
from callforge.dsl.handlers import HandlerRegistry
from callforge.dsl.models import CustomHandlerSpec, ScenarioSpec, SimpleSpec
from callforge.engine.executor import execute_request
from callforge.engine.scenario import ScenarioRunner, ScenarioState

if TYPE_CHECKING:
    from callforge._internal.config import RequestSettings
    from callforge.dsl.models import ExecutionSpec, RequestDescriptor

logger = get_logger("engine.dispatch")


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of executing one spec once.

    Attributes:
        exit_code: 0 on success, 1 on an execution-level failure.
        status: Final HTTP status, None for custom handlers.
        body: Final response body for the caller to render, None for
            custom handlers.
        table_hint: Column hints carried over from the descriptor.
        error_message: Why a scenario ended in failure.
    """

    exit_code: int
    status: int | None = None
    body: str | None = None
    table_hint: tuple[str, ...] | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """Return True when ``exit_code`` is 0."""
        return self.exit_code == 0


def _log_progress(progress: float) -> None:
    logger.info("Progress: %.1f%%", progress)


async def _run_simple(descriptor: RequestDescriptor, settings: RequestSettings) -> ExecutionOutcome:
    response = await execute_request(descriptor, settings)
    return ExecutionOutcome(
        exit_code=0 if response.ok else 1,
        status=response.status,
        body=response.body,
        table_hint=descriptor.table_hint,
    )


async def _run_scenario(
    spec: ScenarioSpec,
    settings: RequestSettings,
    config: ExecutionConfig,
) -> ExecutionOutcome:
    human = config.output_mode is OutputMode.HUMAN
    outcome = await ScenarioRunner(spec, settings, on_progress=_log_progress if human else None).run()
    if human and outcome.state is ScenarioState.FAILED:
        logger.error("Error: %s", outcome.error_message)
    elif human:
        logger.info("Operation completed successfully")
    return ExecutionOutcome(
        exit_code=outcome.exit_code,
        status=outcome.status,
        body=outcome.body,
        error_message=outcome.error_message,
    )


async def _run_handler(
    spec: CustomHandlerSpec,
    config: ExecutionConfig,
    handlers: HandlerRegistry | None,
) -> ExecutionOutcome:
    handler = (handlers if handlers is not None else HandlerRegistry()).lookup(spec.name)
    exit_code = await handler(dict(spec.bindings), spec.base_url, config)
    return ExecutionOutcome(exit_code=exit_code or 0)


async def execute_spec(
    spec: ExecutionSpec,
    config: ExecutionConfig | None = None,
    handlers: HandlerRegistry | None = None,
    *,
    settings: RequestSettings | None = None,
) -> ExecutionOutcome:
    """Execute ``spec`` once.

    Args:
        spec: The spec to execute.
        config: Execution options. Defaults to ``ExecutionConfig()``.
        handlers: Registry consulted for ``CustomHandlerSpec``.
        settings: Transport settings; derived from ``config`` if omitted.

    Returns:
        The ExecutionOutcome. A non-2xx response or a scenario that hits
        an ``error`` condition yields exit code 1 rather than raising.

    Raises:
        CallForgeError: Any configuration, network, parse, scenario or
            polling timeout error. A missing handler is reported as a
            ``ConfigurationError`` before anything runs.
    """
    config = config or ExecutionConfig()
    settings = settings or config.request_settings()

    match spec:
        case SimpleSpec(descriptor=descriptor):
            return await _run_simple(descriptor, settings)
        case ScenarioSpec():
            return await _run_scenario(spec, settings, config)
        case CustomHandlerSpec():
            return await _run_handler(spec, config, handlers)
        case _:
            assert_never(spec)
