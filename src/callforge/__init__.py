"""CallForge — declarative HTTP command execution and load runs."""

from __future__ import annotations

from callforge._internal.config import ExecutionConfig, OutputMode, load_config
from callforge._internal.errors import (
    CallForgeError,
    ConfigurationError,
    HttpStatusError,
    NetworkError,
    PollingTimeoutError,
    ResponseParseError,
    ScenarioDefinitionError,
    ScenarioError,
)
from callforge._internal.logging import setup_logging
from callforge.dsl.assembler import build_execution_spec
from callforge.dsl.handlers import HandlerRegistry
from callforge.dsl.models import (
    CommandDefinition,
    CustomHandlerSpec,
    ExecutionSpec,
    RequestDescriptor,
    ScenarioSpec,
    SimpleSpec,
)
from callforge.engine.dispatch import ExecutionOutcome, execute_spec
from callforge.engine.harness import LoadHarness, RunReport, run, run_sync

__version__ = "0.1.0"

__all__ = [
    "CallForgeError",
    "CommandDefinition",
    "ConfigurationError",
    "CustomHandlerSpec",
    "ExecutionConfig",
    "ExecutionOutcome",
    "ExecutionSpec",
    "HandlerRegistry",
    "HttpStatusError",
    "LoadHarness",
    "NetworkError",
    "OutputMode",
    "PollingTimeoutError",
    "RequestDescriptor",
    "ResponseParseError",
    "RunReport",
    "ScenarioDefinitionError",
    "ScenarioError",
    "ScenarioSpec",
    "SimpleSpec",
    "build_execution_spec",
    "execute_spec",
    "load_config",
    "run",
    "run_sync",
    "setup_logging",
]
