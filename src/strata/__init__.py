"""Strata — routing and middleware composition for Python web applications.

Patterns, groups, and layered middleware around plain request/response
handlers. Everything is synchronous and re-entrant.

Basic usage::

    from strata import App, Request

    app = App()

    def hello(request, response, args):
        return response.write(f"Hello {args['name']}")

    app.get("/hello/{name}", hello)
    response = app.handle(Request("GET", "/hello/world"))

Services by id::

    from strata import ServiceContainer

    container = ServiceContainer()
    container.provide("users", UserController)
    app = App(container=container)
    app.get("/users", "users:index")
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Container",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "MiddlewareContractViolation",
    "Next",
    "PatternCompileError",
    "Request",
    "ResolutionError",
    "Response",
    "RouteNotFound",
    "ServiceContainer",
    "StrataError",
    "UnknownRoute",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import strata`` fast while providing a clean top-level API.
    """
    if name == "App":
        from strata.app import App

        return App

    if name == "AppConfig":
        from strata.config import AppConfig

        return AppConfig

    if name == "Request":
        from strata.http.request import Request

        return Request

    if name == "Response":
        from strata.http.response import Response

        return Response

    if name in ("Container", "ServiceContainer"):
        from strata import container as _container

        return getattr(_container, name)

    if name in ("Middleware", "Next"):
        from strata.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "MiddlewareContractViolation",
        "PatternCompileError",
        "ResolutionError",
        "RouteNotFound",
        "StrataError",
        "UnknownRoute",
    ):
        from strata import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
