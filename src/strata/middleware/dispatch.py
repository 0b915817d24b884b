"""Terminal steps of the two middleware chains.

``DispatchHandler`` ends the application chain: it matches the request
against the router, then runs the matched route's own chain.
``InvocationHandler`` ends a route chain: it resolves the route target,
creates the response, and calls the router's invocation strategy.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from strata.http.request import Request
from strata.http.response import Response

if TYPE_CHECKING:
    from strata.routing.route import Route
    from strata.routing.router import Router


class DispatchHandler:
    """Match the request and run the matched route.

    Args:
        router: Zero-argument callable returning the current router.

    ``RouteNotFound`` and ``MethodNotAllowed`` raised by the router
    propagate to the enclosing layers unchanged.
    """

    __slots__ = ("_router",)

    def __init__(self, router: Callable[[], Router]) -> None:
        self._router = router

    def handle(self, request: Request) -> Response:
        match = self._router().match(request.method, request.path, request=request)
        request = request.with_attributes(
            {"route": match.route, "route_arguments": match.arguments},
        )
        return match.route.run(request, match.arguments)

    def __repr__(self) -> str:
        return "DispatchHandler()"


class InvocationHandler:
    """Call a route's target through the router's invocation strategy."""

    __slots__ = ("arguments", "route")

    def __init__(self, route: Route, arguments: Mapping[str, str]) -> None:
        self.route = route
        self.arguments = arguments

    def handle(self, request: Request) -> Response:
        router = self.route.router
        target = router.callable_resolver.resolve(self.route.callable)
        response = router.response_factory()
        result = router.default_invocation_strategy(target, request, response, self.arguments)
        return coerce_result(result, response)


def coerce_result(result: Any, response: Response) -> Response:
    """Turn a handler's return value into a ``Response``.

    ``None`` means the handler worked on *response* in place; text is
    written into *response*'s body.
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return response
    if isinstance(result, str | bytes):
        return response.write(result)
    msg = f"Route handler returned {type(result).__name__}; expected Response, str, bytes, or None"
    raise TypeError(msg)
