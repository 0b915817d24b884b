"""Strata application class.

Holds the route table, the global middleware chain, and the swappable
collaborators (container, router, callable resolver). Routes and
middleware are registered during setup; ``handle()`` can then be called
any number of times, concurrently or recursively from inside a
middleware.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Mapping
from typing import IO, Any

from strata._internal.types import Target
from strata._internal.wsgi import Environ, StartResponse, WSGIBody
from strata.config import AppConfig
from strata.container import Container
from strata.http.request import Request
from strata.http.response import Body, Response
from strata.middleware.builtin import ErrorMiddleware
from strata.middleware.dispatch import DispatchHandler
from strata.middleware.protocol import Layer, RequestHandler, as_layer
from strata.middleware.runner import MiddlewareRunner
from strata.resolver import CallableResolver
from strata.routing.group import RouteGroup
from strata.routing.route import Route
from strata.routing.router import Router
from strata.server.sender import ResponseEmitter, iter_body, status_line

ANY_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class App:
    """The strata application.

    Usage::

        app = App()

        def hello(request, response, args):
            return response.write(f"Hello {args['name']}")

        app.get("/hello/{name}", hello)
        app.group("/admin", lambda admin: admin.get("/stats", stats)).add(require_login)

        response = app.handle(Request("GET", "/hello/world"))

    Thread safety:
        Registration is single-threaded setup. ``handle()`` keeps every
        piece of per-request state on the call stack, so concurrent and
        re-entrant calls share only the read-only route table.
    """

    __slots__ = (
        "_callable_resolver",
        "_container",
        "_middleware_runner",
        "_router",
        "_settings",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        container: Container | None = None,
        response_factory: Callable[[], Response] = Response,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._settings: dict[str, Any] = self.config.as_settings()
        self._container: Container | None = container
        self._callable_resolver = CallableResolver(self.deferred_container())
        self._router = Router(
            callable_resolver=self.deferred_callable_resolver(),
            response_factory=response_factory,
        )
        self._middleware_runner = MiddlewareRunner(DispatchHandler(self.deferred_router()))

    # -- Settings --

    @property
    def settings(self) -> dict[str, Any]:
        """A copy of the settings bag."""
        return dict(self._settings)

    def has_setting(self, key: str) -> bool:
        return key in self._settings

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)

    def add_setting(self, key: str, value: Any) -> None:
        self._settings[key] = value

    def add_settings(self, settings: Mapping[str, Any]) -> None:
        self._settings.update(settings)

    # -- Collaborators --

    @property
    def container(self) -> Container | None:
        return self._container

    @container.setter
    def container(self, container: Container | None) -> None:
        self._container = container

    @property
    def router(self) -> Router:
        return self._router

    @router.setter
    def router(self, router: Router) -> None:
        router.set_callable_resolver(self.deferred_callable_resolver())
        self._router = router

    @property
    def callable_resolver(self) -> CallableResolver:
        return self._callable_resolver

    @callable_resolver.setter
    def callable_resolver(self, resolver: CallableResolver) -> None:
        self._callable_resolver = resolver

    def deferred_container(self) -> Callable[[], Container | None]:
        """A zero-argument callable returning the current container."""
        return lambda: self._container

    def deferred_router(self) -> Callable[[], Router]:
        """A zero-argument callable returning the current router."""
        return lambda: self._router

    def deferred_callable_resolver(self) -> Callable[[], CallableResolver]:
        """A zero-argument callable returning the current callable resolver."""
        return lambda: self._callable_resolver

    # -- Route registration --

    def get(self, pattern: str, target: Target) -> Route:
        return self.map(["GET"], pattern, target)

    def post(self, pattern: str, target: Target) -> Route:
        return self.map(["POST"], pattern, target)

    def put(self, pattern: str, target: Target) -> Route:
        return self.map(["PUT"], pattern, target)

    def patch(self, pattern: str, target: Target) -> Route:
        return self.map(["PATCH"], pattern, target)

    def delete(self, pattern: str, target: Target) -> Route:
        return self.map(["DELETE"], pattern, target)

    def options(self, pattern: str, target: Target) -> Route:
        return self.map(["OPTIONS"], pattern, target)

    def any(self, pattern: str, target: Target) -> Route:
        """Register *target* for every common method."""
        return self.map(ANY_METHODS, pattern, target)

    def map(self, methods: Iterable[str], pattern: str, target: Target) -> Route:
        """Register *target* for *methods* (stored verbatim) and return the route."""
        return self._router.map(methods, pattern, target)

    def route(
        self,
        pattern: str,
        *,
        methods: Iterable[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a route handler via decorator.

        Args:
            pattern: Route pattern. Use ``{param}`` for placeholders and
                ``[...]`` for optional trailing segments.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name for ``router.url_for``.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            route = self.map(methods or ["GET"], pattern, func)
            if name is not None:
                route.set_name(name)
            return func

        return decorator

    def redirect(self, source: str, destination: object, status: int = 302) -> Route:
        """Register a GET route answering with a redirect to *destination*.

        *destination* is stringified on every request, so URI objects work.
        """

        def redirect_handler(request: Request, response: Response, *args: Any) -> Response:
            return response.with_header("Location", str(destination)).with_status(status)

        return self.get(source, redirect_handler)

    def group(self, prefix: str, builder: Callable[[App], Any]) -> RouteGroup:
        """Register routes under *prefix* and return the group.

        *builder* receives this app; routes and groups it registers are
        nested in the new group. Middleware added to the returned group
        wraps all of them::

            def api(app):
                app.get("/users", list_users)

            app.group("/api", api).add(require_token)
        """
        return self._router.group(prefix, builder, handle=self)

    # -- Middleware --

    def add(self, middleware: Any) -> App:
        """Add a global middleware. The last added runs first.

        Raises ``MiddlewareContractViolation`` if *middleware* is not a
        ``(request, next)`` callable, an object with ``process()``, or a
        service id string.
        """
        self._middleware_runner.add(as_layer(middleware, self.deferred_callable_resolver()))
        return self

    def add_error_middleware(self, *, catch_all: bool = False) -> ErrorMiddleware:
        """Add an ``ErrorMiddleware`` that follows the ``display_error_details`` setting.

        The setting is read when this is called, so ``add_setting()`` must
        come first to take effect.
        """
        middleware = ErrorMiddleware(
            display_details=bool(self.get_setting("display_error_details")),
            catch_all=catch_all,
        )
        self.add(middleware)
        return middleware

    @property
    def middleware(self) -> tuple[Layer | RequestHandler, ...]:
        """Global layers, outermost first, with the dispatch step last."""
        return self._middleware_runner.middleware

    # -- Request handling --

    def handle(self, request: Request) -> Response:
        """Run *request* through the middleware and the matched route.

        Re-entrant: a middleware may call ``handle`` again for a
        sub-request. ``HEAD`` responses lose their body; the handler
        still runs once.

        Raises ``RouteNotFound`` and ``MethodNotAllowed`` when no
        middleware turns them into a response.
        """
        response = self._middleware_runner.handle(request)
        if request.method == "HEAD":
            response = response.with_body(Body())
        return response

    def run(self, request: Request, *, stream: IO[Any] | None = None) -> Response:
        """Handle *request* and write the response body to *stream* (stdout)."""
        response = self.handle(request)
        emitter = ResponseEmitter(self.get_setting("response_chunk_size", 4096))
        emitter.emit(response, stream if stream is not None else sys.stdout)
        return response

    def __call__(self, environ: Environ, start_response: StartResponse) -> WSGIBody:
        """WSGI entry point."""
        response = self.handle(Request.from_wsgi(environ))
        chunks = list(iter_body(response, self.get_setting("response_chunk_size", 4096)))
        if self.get_setting("add_content_length_header") and not response.has_header(
            "Content-Length"
        ):
            response = response.with_header("Content-Length", str(sum(map(len, chunks))))
        start_response(status_line(response), list(response.headers.raw))
        return chunks
