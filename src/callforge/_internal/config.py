"""Execution configuration for CallForge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

from callforge._internal.errors import ConfigurationError

DEFAULT_USER_AGENT = "callforge/0.1.0"


class OutputMode(Enum):
    """How the caller wants responses surfaced."""

    JSON = "json"
    HUMAN = "human"
    QUIET = "quiet"


class RunMode(Enum):
    """Execution mode selected from an ``ExecutionConfig``."""

    SINGLE = "single"
    COUNT = "count"
    DURATION = "duration"


@dataclass(frozen=True)
class RequestSettings:
    """Per-request transport settings handed to the executor.

    Attributes:
        conn_timeout: Connect timeout in seconds, or None for no limit.
        request_timeout: Total request timeout in seconds, or None.
        user_agent: Value of the ``User-Agent`` header.
        verbose: Log request and response summaries.
    """

    conn_timeout: float | None = None
    request_timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    verbose: bool = False


@dataclass(frozen=True)
class ExecutionConfig:
    """Options controlling how an execution spec is run.

    ``duration_seconds > 0`` takes precedence over ``count``, and a
    ``concurrency`` of 0 is treated as 1.

    Attributes:
        output_mode: How the caller renders results.
        conn_timeout: Connect timeout in seconds.
        request_timeout: Total request timeout in seconds.
        user_agent: ``User-Agent`` header sent with every request.
        verbose: Emit request/response diagnostics on stderr.
        count: Number of attempts for a count-mode load run.
        duration_seconds: Wall-clock length of a duration-mode load run.
        concurrency: Number of workers for a load run.
    """

    output_mode: OutputMode = OutputMode.HUMAN
    conn_timeout: float | None = None
    request_timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    verbose: bool = False
    count: int | None = None
    duration_seconds: float = 0
    concurrency: int = 1

    @property
    def mode(self) -> RunMode:
        """Return the run mode implied by ``duration_seconds`` and ``count``."""
        if self.duration_seconds > 0:
            return RunMode.DURATION
        if self.count is not None and self.count > 1:
            return RunMode.COUNT
        return RunMode.SINGLE

    @property
    def workers(self) -> int:
        """Return the normalized worker count (never less than 1)."""
        return max(self.concurrency, 1)

    def request_settings(self, *, verbose: bool | None = None) -> RequestSettings:
        """Derive executor settings from this config.

        Args:
            verbose: Override the config's verbose flag. Load-run workers
                pass False so individual attempts stay silent.

        Returns:
            RequestSettings for the executor.
        """
        return RequestSettings(
            conn_timeout=self.conn_timeout,
            request_timeout=self.request_timeout,
            user_agent=self.user_agent,
            verbose=self.verbose if verbose is None else verbose,
        )


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigurationError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got: {value}"
        raise ConfigurationError(msg)
    return value


def load_config(**overrides: Any) -> ExecutionConfig:
    """Build an ``ExecutionConfig`` from environment variables and overrides.

    Environment variables:
        CALLFORGE_CONN_TIMEOUT: Connect timeout in seconds.
        CALLFORGE_TIMEOUT: Request timeout in seconds.
        CALLFORGE_USER_AGENT: User-Agent header value.
        CALLFORGE_CONCURRENCY: Default worker count for load runs.

    Keyword overrides that are not None win over the environment.

    Args:
        **overrides: ``ExecutionConfig`` field values.

    Returns:
        Populated ExecutionConfig instance.

    Raises:
        ConfigurationError: If an environment variable or override has an
            invalid value.
    """
    values: dict[str, Any] = {
        "conn_timeout": _env_float("CALLFORGE_CONN_TIMEOUT"),
        "request_timeout": _env_float("CALLFORGE_TIMEOUT"),
        "user_agent": os.environ.get("CALLFORGE_USER_AGENT") or DEFAULT_USER_AGENT,
    }

    concurrency_str = os.environ.get("CALLFORGE_CONCURRENCY", "1")
    try:
        values["concurrency"] = int(concurrency_str)
    except ValueError:
        msg = f"CALLFORGE_CONCURRENCY must be an integer, got: {concurrency_str!r}"
        raise ConfigurationError(msg) from None

    values.update({key: value for key, value in overrides.items() if value is not None})

    if values["concurrency"] < 0:
        msg = f"concurrency must be >= 0, got: {values['concurrency']}"
        raise ConfigurationError(msg)
    if values.get("duration_seconds", 0) < 0:
        msg = f"duration_seconds must be >= 0, got: {values['duration_seconds']}"
        raise ConfigurationError(msg)

    try:
        return ExecutionConfig(**values)
    except TypeError as exc:
        msg = f"Invalid configuration option: {exc}"
        raise ConfigurationError(msg) from exc
