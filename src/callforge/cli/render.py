"""Echo a single execution outcome to the terminal."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from callforge._internal.config import OutputMode

if TYPE_CHECKING:
    from rich.console import Console

    from callforge.engine.dispatch import ExecutionOutcome


def _try_json(body: str) -> Any | None:
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return None


def render_outcome(outcome: ExecutionOutcome, mode: OutputMode, console: Console) -> None:
    """Print the body of ``outcome`` according to ``mode``.

    ``QUIET`` prints nothing. ``JSON`` pretty-prints bodies that parse as
    JSON and echoes anything else unchanged. ``HUMAN`` echoes the body.
    """
    if mode is OutputMode.QUIET or not outcome.body:
        return

    if mode is OutputMode.JSON:
        document = _try_json(outcome.body)
        if document is not None:
            console.print_json(data=document)
            return

    console.print(outcome.body, markup=False, highlight=False, soft_wrap=True)
