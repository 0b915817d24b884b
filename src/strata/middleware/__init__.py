"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(request: Request, next: Next) -> Response

Built-in middleware:
    ContentLengthMiddleware -- Content-Length for buffered bodies
    ErrorMiddleware -- HTTPError to bare status responses
"""

from strata.middleware.builtin import ContentLengthMiddleware, ErrorMiddleware
from strata.middleware.protocol import Layer, Middleware, Next

__all__ = [
    "ContentLengthMiddleware",
    "ErrorMiddleware",
    "Layer",
    "Middleware",
    "Next",
]
