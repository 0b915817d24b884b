"""Middleware protocol and Next type.

A middleware is any callable matching::

    def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.
Objects exposing ``process(request, handler)`` are accepted as well, and
a string is taken as a service id resolved on first use.

``next`` runs the remainder of the chain. It is also available as
``next.handle(request)``. Whatever it returns is the response of the
inner layers; a middleware may inspect, replace, or write to it before
returning it outward.
"""

import inspect
from collections.abc import Callable
from typing import Any, Protocol

from strata.errors import MiddlewareContractViolation
from strata.http.request import Request
from strata.http.response import Response

# The remainder of a middleware chain
type Next = Callable[[Request], Response]

# The normalized form every accepted middleware is turned into
type Layer = Callable[[Request, Next], Response]


class Middleware(Protocol):
    """Protocol for strata middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RateLimiter:
            def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    def __call__(self, request: Request, next: Next) -> Response: ...


class RequestHandler(Protocol):
    """A terminal step: turns a request into a response, no continuation."""

    def handle(self, request: Request) -> Response: ...


class ProcessMiddleware:
    """Adapts an object with ``process(request, handler)`` to a layer."""

    __slots__ = ("middleware",)

    def __init__(self, middleware: Any) -> None:
        self.middleware = middleware

    def __call__(self, request: Request, next: Next) -> Response:
        return self.middleware.process(request, next)

    def __repr__(self) -> str:
        return f"ProcessMiddleware({self.middleware!r})"


class DeferredMiddleware:
    """A middleware named by service id, resolved on first use.

    Resolution goes through the callable resolver, so it sees the
    container the application holds at dispatch time. The resolved value
    must satisfy the middleware contract.
    """

    __slots__ = ("id", "_resolver")

    def __init__(self, id: str, resolver: Callable[[], Any]) -> None:
        self.id = id
        self._resolver = resolver

    def __call__(self, request: Request, next: Next) -> Response:
        service = self._resolver().resolve_service(self.id)
        return as_layer(service)(request, next)

    def __repr__(self) -> str:
        return f"DeferredMiddleware({self.id!r})"


def as_layer(middleware: Any, resolver: Callable[[], Any] | None = None) -> Layer:
    """Normalize *middleware* to a ``(request, next)`` layer.

    Args:
        middleware: A callable, an object with ``process()``, or a
            service id string.
        resolver: Zero-argument callable returning the current
            ``CallableResolver``. Required for string middleware.

    Raises:
        MiddlewareContractViolation: If *middleware* has none of the
            accepted shapes.
    """
    if isinstance(middleware, str):
        if not middleware:
            raise MiddlewareContractViolation(middleware, "Service id must not be empty.")
        if resolver is None:
            raise MiddlewareContractViolation(middleware, "No resolver to look the id up with.")
        return DeferredMiddleware(middleware, resolver)

    process = getattr(middleware, "process", None)
    if callable(process) and not inspect.isfunction(middleware):
        _check_arity(middleware, process)
        return ProcessMiddleware(middleware)

    if callable(middleware):
        _check_arity(middleware, middleware)
        return middleware

    raise MiddlewareContractViolation(middleware)


def _check_arity(middleware: Any, func: Callable[..., Any]) -> None:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return
    try:
        signature.bind(None, None)
    except TypeError as exc:
        raise MiddlewareContractViolation(
            middleware,
            f"It must accept (request, next) positionally, got {signature}.",
        ) from exc
