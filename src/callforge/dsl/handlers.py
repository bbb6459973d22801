"""Registry of custom handlers supplied by the embedding application."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Protocol, overload

from callforge._internal.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from callforge._internal.config import ExecutionConfig
    from callforge._internal.types import Bindings
    from callforge.dsl.models import CommandDefinition


class CustomHandler(Protocol):
    """Protocol for custom handlers.

    A handler receives the resolved bindings, the base URL and the
    execution config, and returns an exit code (None means 0).
    """

    async def __call__(
        self,
        bindings: Bindings,
        base_url: str | None,
        config: ExecutionConfig,
    ) -> int | None:
        """Run the handler."""
        ...


class HandlerRegistry:
    """Named custom handlers, looked up when a command delegates to one."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._handlers: dict[str, CustomHandler] = {}

    @overload
    def register(self, name: str) -> Callable[[CustomHandler], CustomHandler]: ...

    @overload
    def register(self, name: str, handler: CustomHandler) -> CustomHandler: ...

    def register(
        self,
        name: str,
        handler: CustomHandler | None = None,
    ) -> CustomHandler | Callable[[CustomHandler], CustomHandler]:
        """Register a handler under ``name``.

        Usable directly (``registry.register("export", fn)``) or as a
        decorator (``@registry.register("export")``).

        Args:
            name: Handler name referenced by ``custom_handler`` in commands.
            handler: The async handler function.

        Returns:
            The handler, or a decorator when ``handler`` is omitted.

        Raises:
            ConfigurationError: If the handler is not a coroutine function
                or the name is already taken.
        """

        def decorator(func: CustomHandler) -> CustomHandler:
            if not inspect.iscoroutinefunction(func):
                msg = f"Custom handler {name!r} must be an async function"
                raise ConfigurationError(msg)
            if name in self._handlers:
                msg = f"Custom handler {name!r} is already registered"
                raise ConfigurationError(msg)
            self._handlers[name] = func
            return func

        if handler is None:
            return decorator
        return decorator(handler)

    def get(self, name: str) -> CustomHandler | None:
        """Look up a handler by name.

        Args:
            name: The handler name.

        Returns:
            The handler if registered, None otherwise.
        """
        return self._handlers.get(name)

    def lookup(self, name: str) -> CustomHandler:
        """Look up a handler by name, failing if it is missing.

        Raises:
            ConfigurationError: If no handler is registered under ``name``.
        """
        handler = self._handlers.get(name)
        if handler is None:
            msg = f"No handler registered for {name}"
            raise ConfigurationError(msg)
        return handler

    def missing(self, commands: Iterable[CommandDefinition]) -> list[str]:
        """Return handler names referenced by ``commands`` but not registered.

        Names are reported once each, in first-seen order.
        """
        missing: list[str] = []
        for command in commands:
            name = command.custom_handler
            if name is not None and name not in self._handlers and name not in missing:
                missing.append(name)
        return missing

    def validate(self, commands: Iterable[CommandDefinition]) -> None:
        """Check that every handler referenced by ``commands`` is registered.

        Raises:
            ConfigurationError: Listing all missing handler names.
        """
        missing = self.missing(commands)
        if missing:
            msg = f"Missing custom handlers: {', '.join(missing)}"
            raise ConfigurationError(msg)

    def __contains__(self, name: object) -> bool:
        """Return True if a handler is registered under ``name``."""
        return name in self._handlers

    def __len__(self) -> int:
        """Return the number of registered handlers."""
        return len(self._handlers)
