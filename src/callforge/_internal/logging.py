"""Logging setup for CallForge."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure and return the root CallForge logger.

    Sets up a stderr handler on the ``callforge`` logger namespace that
    emits plain ``level: message`` lines. Subsequent calls only update the
    level; handlers are not duplicated.

    Args:
        level: Logging level. Defaults to WARNING; the CLI lowers it to
            INFO when ``--verbose`` is given so request/response summaries
            reach stderr.

    Returns:
        The configured ``callforge`` root logger.
    """
    logger = logging.getLogger("callforge")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``callforge`` namespace.

    Args:
        name: Logger name, appended to ``callforge.`` prefix.
            Example: ``get_logger("engine.harness")`` returns
            ``logging.getLogger("callforge.engine.harness")``.

    Returns:
        A child logger.
    """
    return logging.getLogger(f"callforge.{name}")
