"""Immutable HTTP request.

Frozen metadata plus an attribute bag. The request is honest about what
it is: received data that doesn't change. Every ``with_*`` call returns a
new ``Request``, so a middleware can hand a modified request down the
chain without affecting its caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl

from strata._internal.wsgi import Environ
from strata.http.headers import Headers

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``attributes`` is a string-keyed bag of arbitrary values set by
    middleware and the router (the matched ``route`` among them).
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    attributes: Mapping[str, Any] = field(default=_EMPTY)
    query_string: str = ""
    body: bytes = b""
    http_version: str = "1.1"

    # -- Attributes --

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a new Request with attribute *name* set to *value*."""
        attributes = dict(self.attributes)
        attributes[name] = value
        return replace(self, attributes=MappingProxyType(attributes))

    def with_attributes(self, values: Mapping[str, Any]) -> Request:
        """Return a new Request with every entry of *values* set."""
        if not values:
            return self
        return replace(self, attributes=MappingProxyType({**self.attributes, **values}))

    def without_attribute(self, name: str) -> Request:
        attributes = {k: v for k, v in self.attributes.items() if k != name}
        return replace(self, attributes=MappingProxyType(attributes))

    # -- Headers --

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def get_header(self, name: str) -> list[str]:
        return self.headers.get_list(name)

    def get_header_line(self, name: str) -> str:
        return self.headers.get_line(name)

    def with_header(self, name: str, value: str) -> Request:
        return replace(self, headers=self.headers.with_replaced(name, value))

    def with_added_header(self, name: str, value: str) -> Request:
        return replace(self, headers=self.headers.with_added(name, value))

    def without_header(self, name: str) -> Request:
        return replace(self, headers=self.headers.without(name))

    # -- Target --

    def with_method(self, method: str) -> Request:
        return replace(self, method=method)

    def with_path(self, path: str) -> Request:
        return replace(self, path=path)

    @property
    def query(self) -> dict[str, str]:
        """Query parameters (last value wins for repeated keys)."""
        return dict(parse_qsl(self.query_string, keep_blank_values=True))

    @property
    def url(self) -> str:
        """Request target (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    # -- Factory --

    @classmethod
    def from_wsgi(cls, environ: Environ) -> Request:
        """Create a Request from a WSGI environ dict."""
        headers: list[tuple[str, str]] = []
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                headers.append((key[5:].replace("_", "-").title(), value))
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                headers.append((key.replace("_", "-").title(), value))

        # PEP 3333 hands the path over as latin-1 decoded bytes
        raw_path = environ.get("PATH_INFO", "") or "/"
        path = raw_path.encode("latin-1").decode("utf-8", errors="replace")

        body = b""
        length = environ.get("CONTENT_LENGTH") or ""
        if length.isdigit() and int(length) > 0:
            body = environ["wsgi.input"].read(int(length))

        protocol = environ.get("SERVER_PROTOCOL", "HTTP/1.1")
        return cls(
            method=environ.get("REQUEST_METHOD", "GET"),
            path=path,
            headers=Headers(headers),
            query_string=environ.get("QUERY_STRING", ""),
            body=body,
            http_version=protocol.partition("/")[2] or "1.1",
        )
