"""Command, scenario and request descriptor dataclasses.

``from_dict`` constructors accept mappings already parsed by the caller
(for example from a YAML command file); this module never reads files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

from callforge._internal.errors import ConfigurationError, ScenarioDefinitionError

if TYPE_CHECKING:
    from callforge._internal.types import Bindings

JOB_WITH_POLLING = "job_with_polling"
SCHEDULE_STEP = "schedule_job"
POLL_STEP = "poll_job"


def _require(data: dict[str, Any], key: str, owner: str) -> Any:
    try:
        return data[key]
    except KeyError:
        msg = f"{owner} is missing required field {key!r}"
        raise ConfigurationError(msg) from None


# ---------------------------------------------------------------------------
# Scenario definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompletionCondition:
    """Maps a polled ``status`` value to a terminal action.

    Attributes:
        status: Value of the response's ``status`` field that triggers this
            condition.
        action: ``"success"`` or ``"error"``. Anything else is rejected when
            the condition fires.
        error_field: JSONPath into the response holding the error message.
        error_message: Fixed error message used when ``error_field`` is unset.
    """

    status: str
    action: str
    error_field: str | None = None
    error_message: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletionCondition:
        return cls(
            status=str(_require(data, "status", "completion condition")),
            action=str(_require(data, "action", "completion condition")),
            error_field=data.get("error_field"),
            error_message=data.get("error_message"),
        )


@dataclass(frozen=True)
class PollingPolicy:
    """How often and how long to poll, and when to stop.

    Conditions are evaluated in declared order; the first match wins.

    Attributes:
        interval_seconds: Pause between polls.
        timeout_seconds: Deadline measured from the first poll.
        completion_conditions: Ordered terminal conditions.
    """

    interval_seconds: float
    timeout_seconds: float
    completion_conditions: tuple[CompletionCondition, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PollingPolicy:
        return cls(
            interval_seconds=float(_require(data, "interval_seconds", "polling")),
            timeout_seconds=float(_require(data, "timeout_seconds", "polling")),
            completion_conditions=tuple(
                CompletionCondition.from_dict(c) for c in data.get("completion_conditions", [])
            ),
        )


@dataclass(frozen=True)
class Step:
    """One HTTP step of a scenario.

    Attributes:
        name: Step name (``schedule_job`` or ``poll_job``).
        method: HTTP method.
        endpoint: Endpoint template.
        body: Optional body template.
        headers: Header name to value template.
        extract: Variable name to JSONPath expression, applied to the
            step's response.
        polling: Polling policy; required on the ``poll_job`` step.
    """

    name: str
    method: str
    endpoint: str
    body: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    extract: dict[str, str] = field(default_factory=dict)
    polling: PollingPolicy | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        polling = data.get("polling")
        return cls(
            name=str(_require(data, "name", "scenario step")),
            method=str(_require(data, "method", "scenario step")),
            endpoint=str(_require(data, "endpoint", "scenario step")),
            body=data.get("body"),
            headers=dict(data.get("headers") or {}),
            extract=dict(data.get("extract_response") or data.get("extract") or {}),
            polling=PollingPolicy.from_dict(polling) if polling is not None else None,
        )


@dataclass(frozen=True)
class ScenarioDescriptor:
    """A named multi-step workflow.

    Attributes:
        type: Scenario type; only ``job_with_polling`` is defined.
        steps: Ordered steps.
    """

    type: str
    steps: tuple[Step, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScenarioDescriptor:
        return cls(
            type=str(_require(data, "type", "scenario")),
            steps=tuple(Step.from_dict(s) for s in data.get("steps", [])),
        )

    def validate(self) -> tuple[Step, Step, PollingPolicy]:
        """Check the scenario shape and return its steps and polling policy.

        Returns:
            The schedule step, the poll step and the poll step's policy.

        Raises:
            ConfigurationError: If the scenario type is unsupported.
            ScenarioDefinitionError: If the steps are not exactly
                ``schedule_job`` then ``poll_job``, or ``poll_job`` has no
                polling policy.
        """
        if self.type != JOB_WITH_POLLING:
            msg = f"Unsupported scenario type: {self.type}"
            raise ConfigurationError(msg)
        if len(self.steps) != 2:
            msg = (
                f"{JOB_WITH_POLLING} scenario must have exactly 2 steps "
                f"({SCHEDULE_STEP}, {POLL_STEP}), got {len(self.steps)}"
            )
            raise ScenarioDefinitionError(msg)
        schedule, poll = self.steps
        if schedule.name != SCHEDULE_STEP:
            msg = f"First step must be named {SCHEDULE_STEP!r}, got {schedule.name!r}"
            raise ScenarioDefinitionError(msg)
        if poll.name != POLL_STEP:
            msg = f"Second step must be named {POLL_STEP!r}, got {poll.name!r}"
            raise ScenarioDefinitionError(msg)
        if poll.polling is None:
            msg = f"{POLL_STEP} step must have a polling configuration"
            raise ScenarioDefinitionError(msg)
        return schedule, poll, poll.polling


# ---------------------------------------------------------------------------
# Command definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArgumentSpec:
    """A command argument as far as request assembly is concerned.

    Attributes:
        name: Variable name the argument binds.
        arg_type: Declared type; ``"file"`` enables file overrides.
        file_upload: Whether the bound value is a path to upload in a
            multipart request.
        file_overrides_value_of: For ``"file"`` arguments, the variable that
            receives the file's contents.
        endpoint: Endpoint template used when this argument is selected.
        method: Method used when this argument is selected.
        headers: Header templates merged in when this argument is selected.
        body: Body template used when this argument is selected.
    """

    name: str | None = None
    arg_type: str | None = None
    file_upload: bool = False
    file_overrides_value_of: str | None = None
    endpoint: str | None = None
    method: str | None = None
    headers: dict[str, str] | None = None
    body: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArgumentSpec:
        return cls(
            name=data.get("name"),
            arg_type=data.get("type"),
            file_upload=bool(data.get("file_upload", False)),
            file_overrides_value_of=data.get("file-overrides-value-of"),
            endpoint=data.get("endpoint"),
            method=data.get("method"),
            headers=data.get("headers"),
            body=data.get("body"),
        )


@dataclass(frozen=True)
class CommandDefinition:
    """A resolved command: templates, arguments and an optional scenario.

    Exactly one of ``custom_handler``, ``scenario`` or ``method`` +
    ``endpoint`` drives execution, checked in that order.
    """

    name: str | None = None
    method: str | None = None
    endpoint: str | None = None
    body: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    args: tuple[ArgumentSpec, ...] = ()
    scenario: ScenarioDescriptor | None = None
    custom_handler: str | None = None
    multipart: bool = False
    table_view: tuple[str, ...] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommandDefinition:
        scenario = data.get("scenario")
        table_view = data.get("table_view")
        return cls(
            name=data.get("name"),
            method=data.get("method"),
            endpoint=data.get("endpoint"),
            body=data.get("body"),
            headers=dict(data.get("headers") or {}),
            args=tuple(ArgumentSpec.from_dict(a) for a in data.get("args", [])),
            scenario=ScenarioDescriptor.from_dict(scenario) if scenario is not None else None,
            custom_handler=data.get("custom_handler"),
            multipart=bool(data.get("multipart", False)),
            table_view=tuple(table_view) if table_view is not None else None,
        )


# ---------------------------------------------------------------------------
# Execution specs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestDescriptor:
    """A concrete, template-resolved HTTP request ready to send.

    Attributes:
        method: HTTP method as written; parsed case-insensitively on send.
        endpoint: Absolute URL or path relative to ``base_url``.
        base_url: Base URL for relative endpoints.
        headers: ``"Key: Value"`` header lines.
        body: Raw request body.
        multipart: Send ``file_fields`` as multipart/form-data.
        file_fields: Form field name to local file path.
        table_hint: Column hints for rendering list responses.
    """

    method: str
    endpoint: str
    base_url: str | None = None
    headers: tuple[str, ...] = ()
    body: str | None = None
    multipart: bool = False
    file_fields: dict[str, str] = field(default_factory=dict)
    table_hint: tuple[str, ...] | None = None


@dataclass(frozen=True)
class SimpleSpec:
    """Execute a single request."""

    descriptor: RequestDescriptor


@dataclass(frozen=True)
class ScenarioSpec:
    """Run a multi-step scenario with its starting bindings."""

    scenario: ScenarioDescriptor
    bindings: Bindings
    base_url: str | None = None


@dataclass(frozen=True)
class CustomHandlerSpec:
    """Hand control to a handler registered by the embedding application."""

    name: str
    bindings: Bindings
    base_url: str | None = None


# Closed union; dispatch matches on exactly these three classes.
ExecutionSpec: TypeAlias = SimpleSpec | ScenarioSpec | CustomHandlerSpec
