"""
=============================================================================
HTTP EXCHANGE ERRORS
=============================================================================

Every failure raised by this package derives from HTTPExchangeError.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ERROR TAXONOMY                               │
    ├──────────────────────┬──────────────────────────────────────────────┤
    │ InvalidArgumentError │ Bad input to a constructor or with_* call.   │
    │                      │ Raised immediately; receiver is unchanged.   │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ StreamError          │ Read/write/seek failure, detached stream,    │
    │                      │ stream not readable/writable/seekable.       │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ UploadError          │ get_stream()/move_to() on a failed upload,   │
    │                      │ on an already moved file, or a failed move.  │
    └──────────────────────┴──────────────────────────────────────────────┘

Upload error *codes* (UploadErrorStatus) are plain data carried by
UploadedFile.error and are never raised on their own.

InvalidArgumentError is also a ValueError and a TypeError.
=============================================================================
"""


class HTTPExchangeError(Exception):
    """Base class for all errors raised by httpexchange."""


class InvalidArgumentError(HTTPExchangeError, ValueError, TypeError):
    """
    Raised when a constructor or with_* method gets malformed input.

    Examples: a header value that is not a string, a port outside
    1-65535, an unsupported URI scheme, an unknown HTTP method.
    """


class StreamError(HTTPExchangeError, RuntimeError):
    """Raised when an operation on a Stream cannot be performed."""


class UploadError(HTTPExchangeError, RuntimeError):
    """Raised when an uploaded file cannot be streamed or moved."""
