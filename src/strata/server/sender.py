"""Response emission — writes strata Responses to streams and WSGI servers.

The core produces buffered responses; this module is the only place
that turns them into output.
"""

import codecs
import io
from collections.abc import Iterator
from http import HTTPStatus
from typing import IO, Any

from strata.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def status_line(response: Response) -> str:
    """``"404 Not Found"`` — the WSGI status string for *response*."""
    reason = response.reason
    if not reason:
        try:
            reason = HTTPStatus(response.status).phrase
        except ValueError:
            reason = ""
    return f"{response.status} {reason}".rstrip()


def iter_body(response: Response, chunk_size: int) -> Iterator[bytes]:
    """Yield the body in chunks, or nothing if the status forbids a body."""
    if not _body_allowed(response.status):
        return
    yield from response.body.iter_chunks(chunk_size)


class ResponseEmitter:
    """Write a response body to a stream in fixed-size chunks.

    Text streams (``sys.stdout``) receive decoded UTF-8; binary streams
    receive raw bytes.
    """

    __slots__ = ("chunk_size",)

    def __init__(self, chunk_size: int = 4096) -> None:
        self.chunk_size = chunk_size

    def emit(self, response: Response, stream: IO[Any]) -> None:
        if not isinstance(stream, io.TextIOBase):
            for chunk in iter_body(response, self.chunk_size):
                stream.write(chunk)
            stream.flush()
            return

        # Chunks may split a multi-byte character
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        for chunk in iter_body(response, self.chunk_size):
            stream.write(decoder.decode(chunk))
        stream.write(decoder.decode(b"", final=True))
        stream.flush()
