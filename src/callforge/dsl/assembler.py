"""Turn a command definition plus bindings into an ``ExecutionSpec``."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from callforge._internal.errors import ConfigurationError
from callforge._internal.logging import get_logger
from callforge.dsl.models import (
    CustomHandlerSpec,
    RequestDescriptor,
    ScenarioSpec,
    SimpleSpec,
)
from callforge.dsl.template import substitute

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from callforge._internal.types import Bindings
    from callforge.dsl.models import ArgumentSpec, CommandDefinition, ExecutionSpec

logger = get_logger("dsl.assembler")


def apply_file_overrides(args: Iterable[ArgumentSpec], bindings: Bindings) -> None:
    """Load ``file``-typed argument contents into their target variables.

    For every argument with ``arg_type == "file"``, a declared
    ``file_overrides_value_of`` target and a non-empty bound path, the
    file's text replaces the target variable. Files that cannot be read
    are skipped and the target keeps its current value.

    Args:
        args: Command arguments, in declaration order.
        bindings: Bindings to update in place.
    """
    for arg in args:
        if arg.arg_type != "file" or not arg.file_overrides_value_of or not arg.name:
            continue
        path = bindings.get(arg.name)
        if not path:
            continue
        try:
            bindings[arg.file_overrides_value_of] = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.debug("Skipping file override for %s: cannot read %s", arg.name, path)


def _with_builtins(command: CommandDefinition, bindings: Mapping[str, str]) -> Bindings:
    resolved = dict(bindings)
    resolved["uuid"] = str(uuid.uuid4())
    apply_file_overrides(command.args, resolved)
    return resolved


def build_execution_spec(
    command: CommandDefinition,
    bindings: Mapping[str, str],
    selected: Collection[str],
    base_url: str | None = None,
) -> ExecutionSpec:
    """Build the execution spec for one attempt of ``command``.

    A fresh ``uuid`` binding is generated on every call, so a load run
    that calls this once per attempt sends a different value each time.

    Args:
        command: Resolved command definition.
        bindings: Variable values collected from the caller.
        selected: Names of the arguments the caller actually supplied.
            Only these contribute per-argument overrides.
        base_url: Base URL for relative endpoints.

    Returns:
        A ``CustomHandlerSpec`` if the command names a handler, else a
        ``ScenarioSpec`` if it carries a scenario, else a ``SimpleSpec``.

    Raises:
        ConfigurationError: If a plain command has no method or endpoint.
    """
    resolved = _with_builtins(command, bindings)

    if command.custom_handler is not None:
        return CustomHandlerSpec(name=command.custom_handler, bindings=resolved, base_url=base_url)

    if command.scenario is not None:
        return ScenarioSpec(scenario=command.scenario, bindings=resolved, base_url=base_url)

    if command.method is None or command.endpoint is None:
        msg = f"Command {command.name or '<unnamed>'!r} needs a method and an endpoint"
        raise ConfigurationError(msg)

    method = command.method
    endpoint = substitute(command.endpoint, resolved)
    body = substitute(command.body, resolved) if command.body is not None else None
    headers = {key: substitute(value, resolved) for key, value in command.headers.items()}

    # Overrides apply in argument declaration order; later arguments win.
    for arg in command.args:
        if arg.name is None or arg.name not in selected:
            continue
        if arg.endpoint is not None:
            endpoint = substitute(arg.endpoint, resolved)
        if arg.method is not None:
            method = arg.method
        if arg.headers:
            for key, value in arg.headers.items():
                headers[key] = substitute(value, resolved)
        if arg.body is not None:
            body = substitute(arg.body, resolved)

    file_fields: dict[str, str] = {}
    if command.multipart:
        for arg in command.args:
            if arg.file_upload and arg.name is not None and arg.name in resolved:
                file_fields[arg.name] = resolved[arg.name]

    return SimpleSpec(
        descriptor=RequestDescriptor(
            method=method,
            endpoint=endpoint,
            base_url=base_url,
            headers=tuple(f"{key}: {value}" for key, value in headers.items()),
            body=body,
            multipart=command.multipart,
            file_fields=file_fields,
            table_hint=command.table_view,
        )
    )
