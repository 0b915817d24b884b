"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable. The application copies it into a flat settings bag
that can be extended at runtime with ``add_setting``.
"""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(display_error_details=True, response_chunk_size=8192)
    """

    # HTTP protocol version the application speaks
    http_version: str = "1.1"

    # Bytes per chunk when emitting a response body
    response_chunk_size: int = 4096

    # Add Content-Length when the application did not set one
    add_content_length_header: bool = True

    # Include exception details in 500 responses from App.add_error_middleware
    display_error_details: bool = False

    def as_settings(self) -> dict[str, Any]:
        """The config as a flat ``{field: value}`` dict."""
        return asdict(self)
