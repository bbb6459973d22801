"""``{name}`` placeholder substitution for endpoint, body and header templates."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute(template: str, bindings: Mapping[str, str]) -> str:
    """Replace every ``{identifier}`` in ``template`` with its bound value.

    Unbound identifiers become the empty string. Substituted values are
    not expanded again, and anything that is not a well-formed
    placeholder (``{}``, ``{1x}``, ``{a-b}``, unbalanced braces) is left
    as written.

    Args:
        template: Template string.
        bindings: Variable name to value mapping.

    Returns:
        The substituted string.
    """
    return _PLACEHOLDER_RE.sub(lambda m: bindings.get(m.group(1), ""), template)
