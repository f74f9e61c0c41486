"""
=============================================================================
HTTP MESSAGE COMPONENTS
=============================================================================

Immutable request/response value objects plus the stream, URI and upload
types they are made of.

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ MESSAGE (message.py, headers.py)                                    │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Protocol version + case-insensitive multi-value headers + body      │
    │                                                                     │
    │   message.with_header("content-type", "text/html")                  │
    │   message.get_header_line("Content-Type")  → "text/html"            │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUESTS (request.py, server_request.py, environment.py)            │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Request: method + URI + request target                              │
    │ ServerRequest: Request built from an Environment snapshot, with     │
    │   server params, cookies, query, uploads, parsed body, attributes   │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py, status_codes.py)                             │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Status code + reason phrase; serialize with to_bytes() or emit      │
    │ with send()                                                         │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ SUPPORT (stream.py, uri.py, uploaded_file.py, errors.py)            │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Stream: file-like body wrapper                                      │
    │ Uri: RFC 3986 URI value object                                      │
    │ UploadedFile: one received file, movable once                       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .errors import HTTPExchangeError, InvalidArgumentError, StreamError, UploadError
from .stream import Stream
from .uri import Uri
from .message import Message
from .request import Request
from .environment import Environment
from .server_request import ServerRequest
from .response import Response
from .status_codes import HTTPStatus
from .uploaded_file import (
    UploadedFile,
    UploadErrorStatus,
    normalize_uploaded_files,
)

# Public API - what you get when you do:
# from httpexchange.http import *
__all__ = [
    # Errors
    "HTTPExchangeError",
    "InvalidArgumentError",
    "StreamError",
    "UploadError",

    # Building blocks
    "Stream",
    "Uri",
    "Message",

    # Requests
    "Request",
    "ServerRequest",
    "Environment",

    # Responses
    "Response",
    "HTTPStatus",

    # Uploads
    "UploadedFile",
    "UploadErrorStatus",
    "normalize_uploaded_files",
]
