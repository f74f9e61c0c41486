"""
=============================================================================
HTTPEXCHANGE - Immutable HTTP Request/Response Messages
=============================================================================

Value objects for the two halves of an HTTP exchange. Every with_* method
returns a modified copy; the original is never touched.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpexchange/
    ├── __init__.py          # This file - package exports
    ├── config.py            # ExchangeConfig dataclass + logging setup
    └── http/
        ├── errors.py        # Exception hierarchy
        ├── stream.py        # Stream body wrapper
        ├── headers.py       # Header name/value normalization
        ├── message.py       # Message base (version, headers, body)
        ├── uri.py           # Uri value object
        ├── request.py       # Request
        ├── environment.py   # Environment snapshot (WSGI adapter)
        ├── server_request.py# ServerRequest
        ├── response.py      # Response + emission
        ├── status_codes.py  # HTTPStatus enum
        └── uploaded_file.py # UploadedFile + upload tree normalization

=============================================================================
QUICK START
=============================================================================

    from httpexchange import Response, ServerRequest, Stream

    def app(environ, start_response):
        request = ServerRequest.from_wsgi(environ)
        name = request.input("name", "world")

        response = (
            Response()
            .with_header("Content-Type", "text/plain")
            .with_body(Stream.from_bytes(f"Hello, {name}!".encode()))
        )
        start_response(response.status_line.split(" ", 1)[1], [
            (k, v) for k, values in response.headers.items() for v in values
        ])
        return response.body.iter_chunks()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ExchangeConfig
from .http import (
    Environment,
    HTTPExchangeError,
    HTTPStatus,
    InvalidArgumentError,
    Message,
    Request,
    Response,
    ServerRequest,
    Stream,
    StreamError,
    UploadedFile,
    UploadError,
    UploadErrorStatus,
    Uri,
)

__all__ = [
    "ExchangeConfig",
    "Environment",
    "HTTPExchangeError",
    "HTTPStatus",
    "InvalidArgumentError",
    "Message",
    "Request",
    "Response",
    "ServerRequest",
    "Stream",
    "StreamError",
    "UploadedFile",
    "UploadError",
    "UploadErrorStatus",
    "Uri",
    "__version__",
]
