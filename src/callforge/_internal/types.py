"""Shared type aliases for CallForge."""

from __future__ import annotations

# Template variables: name -> string value.
Bindings = dict[str, str]
