"""``job_with_polling`` scenario: schedule a job, then poll it to completion."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from callforge._internal.config import RequestSettings
from callforge._internal.errors import (
    ConfigurationError,
    HttpStatusError,
    PollingTimeoutError,
    ResponseParseError,
    ScenarioError,
)
from callforge._internal.logging import get_logger
from callforge.dsl.extract import extract_value
from callforge.dsl.models import RequestDescriptor
from callforge.dsl.template import substitute
from callforge.engine.executor import execute_request

if TYPE_CHECKING:
    from collections.abc import Callable

    from callforge._internal.types import Bindings
    from callforge.dsl.models import CompletionCondition, PollingPolicy, ScenarioSpec, Step

logger = get_logger("engine.scenario")

DEFAULT_ERROR_MESSAGE = "Operation failed"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ScenarioState(Enum):
    """State machine for a scenario run."""

    CREATED = auto()
    SCHEDULING = auto()
    POLLING = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    TIMED_OUT = auto()


@dataclass(frozen=True)
class ScenarioOutcome:
    """Terminal result of a scenario that reached a completion condition.

    Attributes:
        state: ``SUCCEEDED`` or ``FAILED``.
        body: Body of the final poll response.
        status: HTTP status of the final poll response.
        polls: Number of poll requests sent.
        error_message: Failure message when ``state`` is ``FAILED``.
    """

    state: ScenarioState
    body: str
    status: int
    polls: int
    error_message: str | None = None

    @property
    def exit_code(self) -> int:
        """Return 0 for a successful scenario, else 1."""
        return 0 if self.state is ScenarioState.SUCCEEDED else 1


def step_descriptor(step: Step, bindings: Bindings, base_url: str | None) -> RequestDescriptor:
    """Substitute a step's templates with the current bindings."""
    return RequestDescriptor(
        method=step.method,
        endpoint=substitute(step.endpoint, bindings),
        base_url=base_url,
        headers=tuple(f"{key}: {substitute(value, bindings)}" for key, value in step.headers.items()),
        body=substitute(step.body, bindings) if step.body is not None else None,
    )


def _parse_json(body: str, purpose: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse {purpose} as JSON: {exc}"
        raise ResponseParseError(msg) from exc


class ScenarioRunner:
    """Drives one ``job_with_polling`` scenario run.

    State machine: CREATED -> SCHEDULING -> POLLING -> SUCCEEDED
                                                    -> FAILED
                                                    -> TIMED_OUT

    The schedule step runs once. Its extraction rules add variables to
    the bindings, and the poll step is re-substituted from those bindings
    on every iteration. Nothing is retried: any HTTP, transport or parse
    failure aborts the run.
    """

    def __init__(
        self,
        spec: ScenarioSpec,
        settings: RequestSettings | None = None,
        *,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            spec: Scenario and its starting bindings.
            settings: Transport settings for every step.
            on_progress: Called with the ``progress`` value of each poll
                response that did not complete the scenario.
        """
        self._spec = spec
        self._settings = settings or RequestSettings()
        self._on_progress = on_progress
        self._bindings: Bindings = dict(spec.bindings)
        self._state = ScenarioState.CREATED

    @property
    def state(self) -> ScenarioState:
        """Return the current scenario state."""
        return self._state

    @property
    def bindings(self) -> Bindings:
        """Return the bindings, including extracted variables."""
        return dict(self._bindings)

    async def run(self) -> ScenarioOutcome:
        """Schedule the job and poll until a completion condition matches.

        Returns:
            ScenarioOutcome in state ``SUCCEEDED`` or ``FAILED``.

        Raises:
            ConfigurationError: If the scenario is malformed or a matched
                condition has an unknown action. Shape problems are raised
                before any request is sent.
            NetworkError: If a request fails at the transport.
            HttpStatusError: If a step returns a non-2xx status.
            ResponseParseError: If a body that must be JSON is not.
            ScenarioError: If an extraction path matches nothing.
            PollingTimeoutError: If ``timeout_seconds`` elapses first.
        """
        schedule_step, poll_step, policy = self._spec.scenario.validate()

        self._state = ScenarioState.SCHEDULING
        try:
            await self._schedule(schedule_step)
            self._state = ScenarioState.POLLING
            outcome = await self._poll(poll_step, policy)
        except PollingTimeoutError:
            self._state = ScenarioState.TIMED_OUT
            raise
        except Exception:
            self._state = ScenarioState.FAILED
            raise

        self._state = outcome.state
        return outcome

    async def _send(self, step: Step) -> str:
        descriptor = step_descriptor(step, self._bindings, self._spec.base_url)
        response = await execute_request(descriptor, self._settings)
        if not response.ok:
            raise HttpStatusError(response.status, response.body)
        return response.body

    async def _schedule(self, step: Step) -> None:
        body = await self._send(step)
        if not step.extract:
            return

        document = _parse_json(body, "response for variable extraction")
        for var_name, path in step.extract.items():
            value = extract_value(document, path)
            if value is None:
                msg = f"Failed to extract variable {var_name!r} using JSONPath {path!r}"
                raise ScenarioError(msg)
            self._bindings[var_name] = value

        logger.info("Job scheduled with ID: %s", self._bindings.get("job_id", "unknown"))

    async def _poll(self, step: Step, policy: PollingPolicy) -> ScenarioOutcome:
        start = time.monotonic()
        polls = 0

        while True:
            if time.monotonic() - start > policy.timeout_seconds:
                msg = f"Polling timeout after {policy.timeout_seconds:g} seconds"
                raise PollingTimeoutError(msg)

            descriptor = step_descriptor(step, self._bindings, self._spec.base_url)
            response = await execute_request(descriptor, self._settings)
            polls += 1
            if not response.ok:
                raise HttpStatusError(response.status, response.body)

            document = _parse_json(response.body, "polling response")
            status = document.get("status") if isinstance(document, dict) else None

            condition = _match_condition(policy.completion_conditions, status)
            if condition is not None:
                return _resolve(condition, document, response.body, response.status, polls)

            progress = document.get("progress") if isinstance(document, dict) else None
            if self._on_progress is not None and isinstance(progress, int | float):
                self._on_progress(float(progress))

            logger.debug("Poll %d: status=%r, sleeping %.2fs", polls, status, policy.interval_seconds)
            await asyncio.sleep(policy.interval_seconds)


def _match_condition(
    conditions: tuple[CompletionCondition, ...],
    status: Any,
) -> CompletionCondition | None:
    if not isinstance(status, str):
        return None
    for condition in conditions:
        if condition.status == status:
            return condition
    return None


def _resolve(
    condition: CompletionCondition,
    document: Any,
    body: str,
    status: int,
    polls: int,
) -> ScenarioOutcome:
    if condition.action == "success":
        return ScenarioOutcome(state=ScenarioState.SUCCEEDED, body=body, status=status, polls=polls)

    if condition.action == "error":
        if condition.error_field is not None:
            message = extract_value(document, condition.error_field) or UNKNOWN_ERROR_MESSAGE
        elif condition.error_message is not None:
            message = condition.error_message
        else:
            message = DEFAULT_ERROR_MESSAGE
        return ScenarioOutcome(
            state=ScenarioState.FAILED,
            body=body,
            status=status,
            polls=polls,
            error_message=message,
        )

    msg = f"Unknown completion action: {condition.action}"
    raise ConfigurationError(msg)
