"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Metadata is immutable by
convention; the body is a writable sink shared by every response
derived from the same original, so layers can write on the way out.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace

from strata.http.headers import Headers


class Body:
    """A writable, append-only response body.

    Accepts ``str`` (encoded as UTF-8) or ``bytes``::

        response.body.write("Hello")
        str(response.body)  # "Hello"
    """

    __slots__ = ("_chunks",)

    def __init__(self, initial: str | bytes = b"") -> None:
        self._chunks: list[bytes] = []
        if initial:
            self.write(initial)

    def write(self, data: str | bytes) -> int:
        """Append *data* and return the number of bytes written.

        Raises ``TypeError`` for anything but ``str`` or a bytes-like object.
        """
        if isinstance(data, str):
            chunk = data.encode("utf-8")
        elif isinstance(data, bytes | bytearray | memoryview):
            chunk = bytes(data)
        else:
            msg = f"Body accepts str or bytes, not {type(data).__name__}"
            raise TypeError(msg)
        self._chunks.append(chunk)
        return len(chunk)

    def getvalue(self) -> bytes:
        """The full body as bytes."""
        return b"".join(self._chunks)

    def iter_chunks(self, size: int) -> Iterator[bytes]:
        """Yield the body in slices of at most *size* bytes."""
        data = self.getvalue()
        for start in range(0, len(data), size):
            yield data[start : start + size]

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)

    def __str__(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Body({self.getvalue()!r})"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Chain ``.with_*()`` calls to set status and headers. Each call returns
    a new ``Response`` that shares the same ``Body``::

        response = Response().with_status(201).with_header("Location", "/users/7")
        response.write("created")
    """

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: Body = field(default_factory=Body)
    reason: str = ""

    # -- Chainable transformations --

    def with_status(self, status: int, reason: str = "") -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status, reason=reason)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response where *name* is set to exactly *value*."""
        return replace(self, headers=self.headers.with_replaced(name, value))

    def with_added_header(self, name: str, value: str) -> Response:
        """Return a new Response with *value* appended to *name*."""
        return replace(self, headers=self.headers.with_added(name, value))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with every header in *headers* set."""
        result = self.headers
        for name, value in headers.items():
            result = result.with_replaced(name, value)
        return replace(self, headers=result)

    def without_header(self, name: str) -> Response:
        """Return a new Response with *name* removed."""
        return replace(self, headers=self.headers.without(name))

    def with_body(self, body: Body) -> Response:
        """Return a new Response writing to a different body sink."""
        return replace(self, body=body)

    # -- Accessors --

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def get_header(self, name: str) -> list[str]:
        """All values of *name*, in the order they were added."""
        return self.headers.get_list(name)

    def get_header_line(self, name: str) -> str:
        """All values of *name* joined by ``", "``."""
        return self.headers.get_line(name)

    # -- Body helpers --

    def write(self, data: str | bytes) -> Response:
        """Write *data* to the body and return this response."""
        self.body.write(data)
        return self

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        return self.body.getvalue()

    @property
    def text(self) -> str:
        """Body as string."""
        return str(self.body)
