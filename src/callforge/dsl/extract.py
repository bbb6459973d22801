"""JSONPath lookups used by scenario extraction and error reporting."""

from __future__ import annotations

import json
from typing import Any

from jsonpath_ng import parse as parse_jsonpath
from jsonpath_ng.exceptions import JSONPathError

from callforge._internal.logging import get_logger

logger = get_logger("dsl.extract")


def _to_binding(value: Any) -> str:
    """Render a JSON value as a binding string."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, int | float):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def extract_value(document: Any, path: str) -> str | None:
    """Resolve ``path`` against ``document`` and return the first match.

    Strings are returned as-is; numbers and booleans are rendered the way
    JSON writes them; objects and arrays are returned as compact JSON.

    Args:
        document: Parsed JSON document.
        path: JSONPath expression such as ``$.job.id``.

    Returns:
        The first match as a string, or None if the path is invalid or
        matches nothing.
    """
    try:
        expression = parse_jsonpath(path)
    except JSONPathError:
        logger.debug("Invalid JSONPath expression: %s", path)
        return None

    matches = expression.find(document)
    if not matches:
        return None
    return _to_binding(matches[0].value)
