"""WSGI type aliases (PEP 3333).

Internal only -- users interact with Request, not these.
"""

from collections.abc import Callable, Iterable
from typing import Any, TypeAlias

Environ: TypeAlias = dict[str, Any]
StartResponse: TypeAlias = Callable[..., Callable[[bytes], object]]
WSGIBody: TypeAlias = Iterable[bytes]
