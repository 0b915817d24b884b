"""Router — the ordered route table and its matcher.

Routes are matched in registration order. Patterns are compiled when a
route is registered, so a malformed pattern fails at ``map()`` time.
After the first dispatch the table is read-only; matching keeps all of
its state on the stack and needs no locking.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

from strata.errors import MethodNotAllowed, RouteNotFound, UnknownRoute
from strata.http.request import Request
from strata.http.response import Response
from strata.resolver import CallableResolver
from strata.routing.group import RouteGroup
from strata.routing.pattern import Placeholder
from strata.routing.route import Route, RouteMatch
from strata.routing.strategies import InvocationStrategy, RequestResponse

logger = logging.getLogger("strata.routing")


class Router:
    """Ordered route table with group scopes and reverse routing.

    Usage::

        router = Router()
        router.map(["GET"], "/users/{id}", show_user)
        match = router.match("GET", "/users/42")
        match.arguments  # {"id": "42"}

    Args:
        callable_resolver: Zero-argument callable returning the resolver
            used for route targets and string middleware. Defaults to a
            resolver with no container.
        response_factory: Creates the response handed to each target.
        invocation_strategy: Initial default strategy
            (``RequestResponse`` if omitted).
    """

    __slots__ = (
        "_default_strategy",
        "_group_stack",
        "_resolver",
        "_routes",
        "_routes_by_id",
        "response_factory",
    )

    def __init__(
        self,
        *,
        callable_resolver: Callable[[], CallableResolver] | None = None,
        response_factory: Callable[[], Response] = Response,
        invocation_strategy: InvocationStrategy | None = None,
    ) -> None:
        self._routes: list[Route] = []
        self._routes_by_id: dict[str, Route] = {}
        self._group_stack: list[RouteGroup] = []
        self._default_strategy: InvocationStrategy = invocation_strategy or RequestResponse()
        self.response_factory = response_factory
        if callable_resolver is None:
            own = CallableResolver()
            callable_resolver = lambda: own  # noqa: E731
        self._resolver = callable_resolver

    # -- Collaborators --

    @property
    def callable_resolver(self) -> CallableResolver:
        """The resolver currently in effect."""
        return self._resolver()

    def set_callable_resolver(self, resolver: Callable[[], CallableResolver]) -> None:
        """Use a different resolver cell for future dispatches."""
        self._resolver = resolver

    def deferred_callable_resolver(self) -> Callable[[], CallableResolver]:
        """A zero-argument callable returning the current resolver."""
        return lambda: self._resolver()

    @property
    def default_invocation_strategy(self) -> InvocationStrategy:
        return self._default_strategy

    def set_default_invocation_strategy(self, strategy: InvocationStrategy) -> None:
        """Change how every route target is called from now on."""
        self._default_strategy = strategy

    # -- Registration --

    def map(self, methods: Iterable[str], pattern: str, target: Any) -> Route:
        """Register a route and return it.

        The stored pattern is the current group prefix followed by
        *pattern*, concatenated verbatim.

        Raises ``PatternCompileError`` for a malformed pattern and
        ``ResolutionError`` for a target that is neither callable nor a
        string.
        """
        group = self._group_stack[-1] if self._group_stack else None
        identifier = f"route{len(self._routes)}"
        route = Route(
            methods,
            (group.pattern if group is not None else "") + pattern,
            target,
            identifier=identifier,
            router=self,
            groups=group.lineage if group is not None else (),
        )
        self._routes.append(route)
        self._routes_by_id[identifier] = route
        logger.debug("Registered %s %s %r", identifier, ",".join(route.methods), route.pattern)
        return route

    register = map

    def push_group(self, prefix: str) -> RouteGroup:
        """Open a group scope nested in the current one."""
        parent = self._group_stack[-1] if self._group_stack else None
        group = RouteGroup(prefix, parent=parent, resolver=self.deferred_callable_resolver())
        self._group_stack.append(group)
        return group

    def pop_group(self) -> RouteGroup | None:
        """Close the innermost group scope."""
        return self._group_stack.pop() if self._group_stack else None

    def group(
        self,
        prefix: str,
        builder: Callable[[Any], Any],
        *,
        handle: Any = None,
    ) -> RouteGroup:
        """Run *builder* inside a new group scope and return the group.

        *builder* is called with *handle* (the router itself by default),
        so registrations it makes land in the group.
        """
        group = self.push_group(prefix)
        try:
            builder(self if handle is None else handle)
        finally:
            self.pop_group()
        return group

    # -- Lookup --

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    def lookup(self, identifier: str) -> Route:
        """Return the route registered as *identifier* (e.g. ``"route0"``)."""
        try:
            return self._routes_by_id[identifier]
        except KeyError:
            raise UnknownRoute(f"No route with identifier {identifier!r}") from None

    def named_route(self, name: str) -> Route:
        """Return the first route named *name*."""
        for route in self._routes:
            if route.name == name:
                return route
        raise UnknownRoute(f"No route named {name!r}")

    # -- Matching --

    def match(self, method: str, path: str, *, request: Request | None = None) -> RouteMatch:
        """Find the first route matching *path* that accepts *method*.

        Methods are compared exactly. A ``HEAD`` request with no route
        accepting ``HEAD`` falls back to the first matching ``GET`` route.

        Raises ``RouteNotFound`` if no pattern matches the path.
        Raises ``MethodNotAllowed`` if patterns match but none accepts the
        method; ``allowed`` lists the methods of every matching route.
        """
        allowed: dict[str, None] = {}
        head_fallback: tuple[Route, dict[str, str]] | None = None

        for route in self._routes:
            params = route.compiled.match(path)
            if params is None:
                continue
            if method in route.methods:
                logger.debug("%s %s matched %s", method, path, route.identifier)
                return _route_match(route, params)
            if method == "HEAD" and head_fallback is None and "GET" in route.methods:
                head_fallback = (route, params)
            allowed.update(dict.fromkeys(route.methods))

        if head_fallback is not None:
            logger.debug("%s %s matched %s via GET", method, path, head_fallback[0].identifier)
            return _route_match(*head_fallback)

        if allowed:
            logger.debug("%s %s not allowed; allowed: %s", method, path, ", ".join(allowed))
            raise MethodNotAllowed(tuple(allowed), request=request)

        logger.debug("%s %s matched no route", method, path)
        raise RouteNotFound(f"No route matches {method} {path!r}", request=request)

    # -- Reverse routing --

    def url_for(
        self,
        name: str,
        data: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> str:
        """Build the path of the route named *name*.

        Uses the most specific pattern variant whose placeholders are all
        present in *data*. *query* is appended as an encoded query string.

        Raises ``UnknownRoute`` for an unknown name and ``ValueError`` if
        even the shortest variant lacks data.
        """
        route = self.named_route(name)
        data = data or {}
        missing = ""
        url: str | None = None
        for variant in route.compiled.variants:
            pieces: list[str] = []
            for part in variant.parts:
                if not isinstance(part, Placeholder):
                    pieces.append(part)
                elif part.name in data:
                    pieces.append(str(data[part.name]))
                else:
                    missing = part.name
                    break
            else:
                url = "".join(pieces)
                break

        if url is None:
            msg = f"Missing data for URL segment: {missing}"
            raise ValueError(msg)
        if query:
            url = f"{url}?{urlencode(query)}"
        return url


def _route_match(route: Route, params: dict[str, str]) -> RouteMatch:
    return RouteMatch(route=route, params=params, arguments={**route.arguments, **params})
