"""Handler registry - one forwarding handler per origin, created on first use."""

import threading
from typing import Callable, Protocol

import logfire


class Handler(Protocol):
    """What the registry needs from a forwarding handler."""

    @property
    def origin(self) -> str: ...

    async def aclose(self) -> None: ...


HandlerFactory = Callable[[str], Handler]


class HandlerRegistry:
    """Maps origin keys to their forwarding handlers.

    Entries are only ever added during normal operation. A handler that
    failed a request stays cached. Everything goes away in drain_all().

    There is no eviction, so the registry grows with the number of distinct
    origins seen. The size is logged on every insert to keep an eye on that.
    """

    def __init__(self):
        self._handlers: dict[str, Handler] = {}
        # Guards check-then-create; never held across an await
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, origin: str) -> bool:
        return origin in self._handlers

    def get(self, origin: str) -> Handler | None:
        """Return the handler for an origin, if one exists."""
        return self._handlers.get(origin)

    def origins(self) -> list[str]:
        """Origins that currently have a handler."""
        # Single-key reads above are atomic; copying iterates, so it must not
        # race an insert
        with self._lock:
            return list(self._handlers)

    def get_or_create(self, origin: str, factory: HandlerFactory) -> Handler:
        """Return the origin's handler, creating it with factory if needed.

        Concurrent first calls for the same origin converge on one handler;
        factory runs at most once per origin. If factory raises, nothing is
        stored and the exception propagates.
        """
        handler = self._handlers.get(origin)
        if handler is not None:
            return handler

        with self._lock:
            handler = self._handlers.get(origin)
            if handler is not None:
                return handler
            handler = factory(origin)
            self._handlers[origin] = handler
            size = len(self._handlers)

        logfire.info(
            "New origin handler: {origin} (registry size: {registry_size})",
            origin=origin,
            registry_size=size,
        )
        return handler

    async def drain_all(self):
        """Close every handler and empty the registry.

        Safe to call more than once; an empty registry is a no-op.
        """
        with self._lock:
            handlers, self._handlers = self._handlers, {}

        for origin, handler in handlers.items():
            try:
                await handler.aclose()
            except Exception as e:
                logfire.error("Failed to close handler for {origin}: {error}", origin=origin, error=str(e))
                continue
            logfire.info("Closed origin handler: {origin}", origin=origin)
