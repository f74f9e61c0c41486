"""
=============================================================================
HTTP REQUEST
=============================================================================

Immutable outgoing/synthetic request: method, URI and request target on
top of the Message envelope. ServerRequest (server_request.py) extends it
with the data the server environment provides.

=============================================================================
REQUEST TARGET
=============================================================================

The request target is what a client puts on the request line:

    GET /api/users?page=1 HTTP/1.1
        ────────┬────────
           request target

Unless overridden with with_request_target(), it is derived from the URI
as path[?query], falling back to "/" when the path is empty.

=============================================================================
HOST HEADER AND with_uri()
=============================================================================

    with_uri(uri)                       Host ← uri.host[:uri.port]
    with_uri(uri, preserve_host=True)   Host kept if present, else as above
    uri without a host                  Host untouched

=============================================================================
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Optional, TypeVar, Union

from .errors import InvalidArgumentError
from .message import Message
from .uri import Uri


_WHITESPACE = re.compile(r"\s")

R = TypeVar("R", bound="Request")


@dataclass(frozen=True, eq=False)
class Request(Message):
    """
    Immutable HTTP request.

    Attributes:
        method: The HTTP method as received or set (not normalized).
        uri: The request URI. A string is parsed into a Uri.
        request_target_override: Explicit request target, if one was set.
        replaced_method: Upper-cased "_method" override sent by HTML forms
            that cannot issue PUT/PATCH/DELETE, or "".

    Example:
        request = Request(method="GET", uri="http://example.com/users")
        request = request.with_header("Accept", "application/json")
    """

    method: str = "GET"
    uri: Union[Uri, str] = field(default_factory=Uri)
    request_target_override: Optional[str] = None
    replaced_method: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.uri, str):
            object.__setattr__(self, "uri", Uri(self.uri))
        elif not isinstance(self.uri, Uri):
            raise InvalidArgumentError("Request URI must be a Uri instance or a string.")

    # =========================================================================
    # REQUEST TARGET
    # =========================================================================

    @property
    def request_target(self) -> str:
        """The explicit override, else path[?query] of the URI, else "/"."""
        if self.request_target_override is not None:
            return self.request_target_override

        target = self.uri.path
        if self.uri.query:
            target += "?" + self.uri.query
        return target or "/"

    def with_request_target(self: R, request_target: str) -> R:
        """
        Return a copy with an explicit request target.

        Raises:
            InvalidArgumentError: If the target is not a string or
                contains whitespace.
        """
        if not isinstance(request_target, str):
            raise InvalidArgumentError("Request target must be a string.")
        if _WHITESPACE.search(request_target):
            raise InvalidArgumentError("Request target cannot contain whitespaces.")
        return replace(self, request_target_override=request_target)

    # =========================================================================
    # METHOD
    # =========================================================================

    def with_method(self: R, method: str) -> R:
        """
        Return a copy with a new HTTP method.

        The method is checked case-insensitively against
        config.allowed_methods and stored exactly as given.

        Raises:
            InvalidArgumentError: For non-strings and unsupported methods.
        """
        self._validate_method(method)
        return replace(self, method=method)

    def _validate_method(self, method: Any) -> None:
        if not isinstance(method, str):
            raise InvalidArgumentError("HTTP method must be a string.")
        if method.upper() not in self.config.allowed_methods:
            raise InvalidArgumentError(
                "Unsupported HTTP method provided. Supported methods: "
                + ", ".join(sorted(self.config.allowed_methods))
                + "."
            )

    # =========================================================================
    # URI
    # =========================================================================

    def with_uri(self: R, uri: Uri, preserve_host: bool = False) -> R:
        """
        Return a copy with a new URI, updating the Host header.

        Args:
            uri: The new URI.
            preserve_host: Keep an existing Host header instead of
                deriving it from the new URI.
        """
        if not isinstance(uri, Uri):
            raise InvalidArgumentError("Request URI must be a Uri instance.")

        if (preserve_host and self.has_header("Host")) or not uri.host:
            return replace(self, uri=uri)

        host = uri.host
        if uri.port is not None:
            host += f":{uri.port}"

        headers = {k: v for k, v in self.headers.items() if k != "Host"}
        headers["Host"] = (host,)
        return replace(self, uri=uri, headers=headers)
