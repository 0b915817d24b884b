"""Strata exception hierarchy.

Shared across Router, App, resolver, and middleware so every module
raises and catches the same types.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from strata.http.request import Request


class StrataError(Exception):
    """Base for all strata-specific errors."""


class ConfigurationError(StrataError):
    """Raised when routes or middleware are registered incorrectly.

    Surfaces at registration time, never deferred to dispatch.
    """


class PatternCompileError(ConfigurationError):
    """A route pattern could not be compiled into a matcher."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Cannot compile route pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class MiddlewareContractViolation(ConfigurationError, TypeError):
    """A middleware value does not satisfy the layer contract.

    A layer is a callable ``(request, next) -> Response``, an object with
    a ``process(request, handler)`` method, or a string service id.
    """

    def __init__(self, value: Any, detail: str = "") -> None:
        msg = (
            f"{value!r} is not a valid middleware. Expected a callable "
            "(request, next), an object with process(request, handler), "
            "or a service id string."
        )
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg)
        self.value = value


class ResolutionError(StrataError):
    """A callable target could not be resolved or invoked."""

    def __init__(self, target: Any, detail: str) -> None:
        super().__init__(f"Cannot resolve {target!r}: {detail}")
        self.target = target
        self.detail = detail


class UnknownRoute(StrataError, LookupError):  # noqa: N818 — mirrors RouteNotFound
    """No registered route has the requested identifier or name."""


class HTTPError(StrataError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. Something outside the
    core (``ErrorMiddleware`` or the caller) turns it into a response.
    """

    def __init__(
        self,
        status: int,
        detail: str = "",
        headers: tuple[tuple[str, str], ...] = (),
        *,
        request: Request | None = None,
    ) -> None:
        super().__init__(status, detail)
        self.status = status
        self.detail = detail
        self.headers = headers
        self.request = request

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route pattern matched the request path."""

    def __init__(self, detail: str = "Not Found", *, request: Request | None = None) -> None:
        super().__init__(status=404, detail=detail, request=request)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — a route pattern matched, but not for this HTTP method.

    ``allowed`` keeps the order in which matching routes were scanned,
    without duplicates. The ``Allow`` header lists the same methods.
    """

    def __init__(
        self,
        allowed: tuple[str, ...],
        detail: str = "",
        *,
        request: Request | None = None,
    ) -> None:
        allow_value = ", ".join(allowed)
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
            request=request,
        )
        self.allowed = allowed
