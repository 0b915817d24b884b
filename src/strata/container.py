"""Service container — the lookup contract used to resolve string targets.

The core only ever asks two questions of a container::

    container.has("users")   # -> bool
    container.get("users")   # -> the service

Any object with those two methods works. ``ServiceContainer`` is a
small implementation for applications that do not bring their own.
"""

import threading
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Container(Protocol):
    """Protocol for service lookup by string id."""

    def has(self, id: str) -> bool: ...

    def get(self, id: str) -> Any: ...


class ServiceContainer:
    """A dict-backed container with lazily created, shared services.

    Usage::

        container = ServiceContainer()
        container.set("settings", {"locale": "en"})
        container.provide("db", connect)
        container.provide("users", lambda: UserController(container.get("db")))

        container.get("users") is container.get("users")  # True
    """

    __slots__ = ("_factories", "_lock", "_services")

    def __init__(self, services: dict[str, Any] | None = None) -> None:
        self._services: dict[str, Any] = dict(services or {})
        self._factories: dict[str, Callable[[], Any]] = {}
        # Re-entrant: a factory may get() the services it depends on
        self._lock = threading.RLock()

    def set(self, id: str, value: Any) -> None:
        """Register an already-built service."""
        self._factories.pop(id, None)
        self._services[id] = value

    def provide(self, id: str, factory: Callable[[], Any]) -> None:
        """Register a zero-argument factory, called once on first ``get``."""
        self._services.pop(id, None)
        self._factories[id] = factory

    def has(self, id: str) -> bool:
        return id in self._services or id in self._factories

    def get(self, id: str) -> Any:
        """Return the service registered under *id*.

        Raises ``KeyError`` if nothing is registered.
        """
        try:
            return self._services[id]
        except KeyError:
            pass
        with self._lock:
            if id in self._services:
                return self._services[id]
            service = self._factories[id]()
            self._services[id] = service
            del self._factories[id]
            return service

    def __contains__(self, id: object) -> bool:
        return isinstance(id, str) and self.has(id)

    def __getitem__(self, id: str) -> Any:
        return self.get(id)
