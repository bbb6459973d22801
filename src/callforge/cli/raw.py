"""``callforge raw``: send an ad-hoc request, optionally as a load run."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.markup import escape

from callforge._internal.config import OutputMode, load_config
from callforge._internal.errors import CallForgeError
from callforge._internal.logging import setup_logging
from callforge.cli.render import render_outcome
from callforge.dsl.models import CommandDefinition
from callforge.engine.harness import LoadHarness

console = Console()
err_console = Console(stderr=True)


def _parse_header_lines(lines: list[str]) -> dict[str, str]:
    """Split ``"Key: Value"`` lines into a header template mapping.

    Raises:
        typer.BadParameter: If a line has no colon or an empty name.
    """
    headers: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            msg = f"Invalid header {line!r}; expected 'Name: value'"
            raise typer.BadParameter(msg, param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def raw_cmd(
    method: str = typer.Argument(
        ...,
        help="HTTP method (GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS).",
    ),
    endpoint: str = typer.Argument(
        ...,
        help="Absolute URL, or a path joined onto --base-url. May use {uuid}.",
    ),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-b",
        envvar="CALLFORGE_BASE_URL",
        help="Base URL for relative endpoints.",
    ),
    header: list[str] = typer.Option(
        [],
        "--header",
        "-H",
        help="Request header as 'Name: value'. Repeatable.",
    ),
    body: str | None = typer.Option(
        None,
        "--body",
        "-d",
        help="Raw request body.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Pretty-print JSON responses and suppress the load-run summary.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Print no response body.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log request and response details to stderr.",
    ),
    count: int | None = typer.Option(
        None,
        "--count",
        "-n",
        help="Send the request this many times and print a summary.",
        min=1,
    ),
    duration: float = typer.Option(
        0.0,
        "--duration",
        "-D",
        help="Send requests for this many seconds. Takes precedence over --count.",
        min=0.0,
    ),
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Number of concurrent workers for --count/--duration.",
        min=0,
    ),
    conn_timeout: float | None = typer.Option(
        None,
        "--conn-timeout",
        help="Connect timeout in seconds.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Total request timeout in seconds.",
    ),
) -> None:
    """Send METHOD ENDPOINT and print the response body."""
    if json_output and quiet:
        msg = "--json and --quiet are mutually exclusive"
        raise typer.BadParameter(msg)

    setup_logging(logging.INFO if verbose else logging.WARNING)

    if json_output:
        output_mode = OutputMode.JSON
    elif quiet:
        output_mode = OutputMode.QUIET
    else:
        output_mode = OutputMode.HUMAN

    command = CommandDefinition(
        name="raw",
        method=method,
        endpoint=endpoint,
        body=body,
        headers=_parse_header_lines(header),
    )

    try:
        config = load_config(
            output_mode=output_mode,
            verbose=verbose,
            count=count,
            duration_seconds=duration,
            concurrency=concurrency,
            conn_timeout=conn_timeout,
            request_timeout=timeout,
        )
        harness = LoadHarness.for_command(
            command,
            {},
            (),
            config,
            base_url=base_url,
            console=console,
        )
        report = harness.run_sync()
    except CallForgeError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1) from exc

    if report.outcome is not None:
        render_outcome(report.outcome, output_mode, console)

    raise typer.Exit(code=report.exit_code)
