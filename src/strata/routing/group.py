"""Route groups — a shared prefix and middleware for nested registrations."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from strata.middleware.protocol import Layer, as_layer


class RouteGroup:
    """A registration scope with a raw prefix and its own middleware.

    ``pattern`` is the literal concatenation of every enclosing prefix and
    this group's own, with no slash added, removed, or collapsed.

    Routes registered inside the group keep a reference to it, so
    middleware added after ``group()`` returns still wraps them::

        app.group("/admin", register_admin).add(require_login)
    """

    __slots__ = ("_resolver", "middleware", "parent", "pattern", "prefix")

    def __init__(
        self,
        prefix: str,
        *,
        parent: RouteGroup | None = None,
        resolver: Callable[[], Any] | None = None,
    ) -> None:
        self.prefix = prefix
        self.parent = parent
        self.pattern = (parent.pattern if parent is not None else "") + prefix
        self.middleware: list[Layer] = []
        self._resolver = resolver

    def add(self, middleware: Any) -> RouteGroup:
        """Append a middleware to this group; the last added runs first."""
        self.middleware.append(as_layer(middleware, self._resolver))
        return self

    @property
    def lineage(self) -> tuple[RouteGroup, ...]:
        """This group and its ancestors, outermost first."""
        chain: list[RouteGroup] = []
        group: RouteGroup | None = self
        while group is not None:
            chain.append(group)
            group = group.parent
        return tuple(reversed(chain))

    def __repr__(self) -> str:
        return f"RouteGroup({self.pattern!r})"
