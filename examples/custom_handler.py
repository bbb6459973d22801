"""Delegate a command to application code through a handler registry.

Handlers are async functions registered by name. Commands that set
``custom_handler`` skip request assembly and call the handler instead.
Run it with:

    python examples/custom_handler.py
"""

from __future__ import annotations

from callforge import CommandDefinition, HandlerRegistry, LoadHarness, load_config

handlers = HandlerRegistry()


@handlers.register("whoami")
async def whoami(bindings, base_url, config):
    """Print what the handler was given and succeed."""
    print(f"base_url={base_url} user={bindings.get('user')} timeout={config.request_timeout}")
    return 0


COMMANDS = [
    CommandDefinition(name="whoami", custom_handler="whoami"),
]


def main() -> int:
    """Validate the registry against the commands, then run one."""
    handlers.validate(COMMANDS)
    harness = LoadHarness.for_command(
        COMMANDS[0],
        {"user": "alice"},
        (),
        load_config(),
        handlers,
        base_url="http://localhost:8080",
    )
    return harness.run_sync().exit_code


if __name__ == "__main__":
    raise SystemExit(main())
