"""Built-in middleware: error responses and Content-Length.

Neither is installed by default. Without ``ErrorMiddleware``, routing
errors propagate to whoever called ``App.handle``.
"""

import logging

from strata.errors import HTTPError
from strata.http.request import Request
from strata.http.response import Response
from strata.middleware.protocol import Next

logger = logging.getLogger("strata.server")


class ErrorMiddleware:
    """Turn ``HTTPError`` into a bare status response.

    The response carries the error's status and headers (``Allow`` for a
    405) and its detail as plain text. Other exceptions propagate unless
    ``catch_all`` is set, in which case they are logged and answered
    with a 500.

    Usage::

        app.add_error_middleware()  # display_details from the app settings
    """

    __slots__ = ("catch_all", "display_details")

    def __init__(self, *, display_details: bool = False, catch_all: bool = False) -> None:
        self.display_details = display_details
        self.catch_all = catch_all

    def __call__(self, request: Request, next: Next) -> Response:
        try:
            return next(request)
        except HTTPError as exc:
            logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
            response = Response().with_status(exc.status)
            for name, value in exc.headers:
                response = response.with_added_header(name, value)
            response = response.with_header("Content-Type", "text/plain; charset=utf-8")
            return response.write(exc.detail or f"Error {exc.status}")
        except Exception as exc:
            if not self.catch_all:
                raise
            logger.exception("500 %s %s", request.method, request.path)
            detail = f"{type(exc).__name__}: {exc}" if self.display_details else "Internal Server Error"
            response = Response().with_status(500)
            response = response.with_header("Content-Type", "text/plain; charset=utf-8")
            return response.write(detail)


class ContentLengthMiddleware:
    """Add a ``Content-Length`` header to responses that lack one."""

    __slots__ = ()

    def __call__(self, request: Request, next: Next) -> Response:
        response = next(request)
        if response.has_header("Content-Length"):
            return response
        return response.with_header("Content-Length", str(len(response.body)))
