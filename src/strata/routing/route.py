"""Route and RouteMatch."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from strata.http.request import Request
from strata.http.response import Response
from strata.middleware.dispatch import InvocationHandler
from strata.middleware.protocol import Layer, as_layer
from strata.middleware.runner import MiddlewareRunner
from strata.resolver import parse_target
from strata.routing.group import RouteGroup
from strata.routing.pattern import CompiledPattern, compile_pattern

if TYPE_CHECKING:
    from strata.routing.router import Router


class Route:
    """One registered endpoint.

    Created by ``Router.map``, which assigns the sequential identifier
    (``route0``, ``route1``, ...) and composes the pattern from the
    enclosing groups. Default arguments and middleware can be added
    afterwards; both methods return the route so calls chain::

        app.get("/hello/{name}", hello).set_argument("greeting", "Hi").add(timing)
    """

    __slots__ = (
        "_compiled",
        "arguments",
        "callable",
        "groups",
        "identifier",
        "methods",
        "middleware",
        "name",
        "router",
    )

    def __init__(
        self,
        methods: Iterable[str],
        pattern: str,
        callable: Any,
        *,
        identifier: str,
        router: Router,
        groups: tuple[RouteGroup, ...] = (),
    ) -> None:
        parse_target(callable)
        self._compiled: CompiledPattern = compile_pattern(pattern)
        # Verbatim, in registration order, without duplicates
        self.methods: tuple[str, ...] = tuple(dict.fromkeys(methods))
        self.callable = callable
        self.identifier = identifier
        self.router = router
        self.groups = groups
        self.arguments: dict[str, str] = {}
        self.middleware: list[Layer] = []
        self.name: str | None = None

    # -- Pattern --

    @property
    def pattern(self) -> str:
        return self._compiled.pattern

    @property
    def compiled(self) -> CompiledPattern:
        return self._compiled

    def set_pattern(self, pattern: str) -> Route:
        """Replace the pattern (compiled immediately)."""
        self._compiled = compile_pattern(pattern)
        return self

    # -- Arguments --

    def get_argument(self, name: str, default: str | None = None) -> str | None:
        return self.arguments.get(name, default)

    def set_argument(self, name: str, value: str) -> Route:
        """Set one default argument. Placeholder values override it."""
        self.arguments[name] = value
        return self

    def set_arguments(self, arguments: Mapping[str, str]) -> Route:
        """Replace all default arguments."""
        self.arguments = dict(arguments)
        return self

    # -- Naming --

    def set_name(self, name: str) -> Route:
        self.name = name
        return self

    # -- Middleware --

    def add(self, middleware: Any) -> Route:
        """Append a middleware to this route; the last added runs first."""
        self.middleware.append(as_layer(middleware, self.router.deferred_callable_resolver()))
        return self

    def effective_middleware(self) -> tuple[Layer, ...]:
        """Every layer wrapping this route's target, outermost first.

        Enclosing groups come outermost to innermost, then the route's
        own layers. Within each scope the last added layer is outermost.
        Group stacks are read now, not at registration, so layers added
        to a group later are included.
        """
        layers: list[Layer] = []
        for group in self.groups:
            layers.extend(reversed(group.middleware))
        layers.extend(reversed(self.middleware))
        return tuple(layers)

    # -- Execution --

    def run(self, request: Request, arguments: Mapping[str, str] | None = None) -> Response:
        """Run the route chain for *request*, without matching.

        *arguments* defaults to the route's default arguments.
        """
        if arguments is None:
            arguments = dict(self.arguments)
        runner = MiddlewareRunner(InvocationHandler(self, arguments), self.effective_middleware())
        return runner.handle(request)

    def __repr__(self) -> str:
        return f"Route({self.identifier!r}, {list(self.methods)!r}, {self.pattern!r})"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``params`` holds only the values extracted from the path;
    ``arguments`` merges them over the route's default arguments.
    """

    route: Route
    params: dict[str, str]
    arguments: dict[str, str]
