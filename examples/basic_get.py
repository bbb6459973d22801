"""Basic load run: send one command 100 times across 10 workers.

The simplest use of the library API: describe a command, then hand it
to the harness. Run it with:

    python examples/basic_get.py
"""

from __future__ import annotations

from callforge import CommandDefinition, LoadHarness, load_config

LIST_ITEMS = CommandDefinition(
    name="list-items",
    method="GET",
    endpoint="/items?limit={limit}",
    headers={"Accept": "application/json"},
)


def main() -> int:
    """Run the load and return its exit code."""
    config = load_config(count=100, concurrency=10)
    harness = LoadHarness.for_command(
        LIST_ITEMS,
        {"limit": "20"},
        (),
        config,
        base_url="http://localhost:8080",
    )
    return harness.run_sync().exit_code


if __name__ == "__main__":
    raise SystemExit(main())
