"""
=============================================================================
HTTP MESSAGE BASE
=============================================================================

The header + body envelope shared by requests and responses.

=============================================================================
COPY-ON-WRITE
=============================================================================

Messages are frozen dataclasses. Every with_* method validates its input
first and only then builds a new instance with dataclasses.replace():

        original ──with_header("X-Id", "1")──►  copy
           │                                     │
           │ headers: {Host: [a]}                │ headers: {Host: [a], X-Id: [1]}
           │ body ──────────────┐   ┌────────────┤ body
           │                    ▼   ▼            │
           │                   Stream (shared)   │

The original is never modified, and the body stream is shared by
reference rather than copied.

=============================================================================
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, TypeVar

from ..config import ExchangeConfig, PROTOCOL_VERSIONS
from .errors import InvalidArgumentError
from .headers import (
    normalize_headers,
    validate_header_name,
    validate_header_value,
)
from .stream import Stream


M = TypeVar("M", bound="Message")


@dataclass(frozen=True, eq=False)
class Message:
    """
    Immutable HTTP message: protocol version, headers and body.

    Attributes:
        protocol_version: "1.0", "1.1", "2.0" or "2".
        headers: Read-only mapping of canonical header name to a tuple of
            values. Use get_header()/get_headers() for list copies.
        body: The message body stream (shared between copies).
        config: Validation settings inherited by derived copies.
    """

    protocol_version: str = "1.1"
    headers: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    body: Stream = field(default_factory=Stream.from_bytes)
    config: ExchangeConfig = field(default_factory=ExchangeConfig, repr=False)

    def __post_init__(self) -> None:
        if self.protocol_version not in PROTOCOL_VERSIONS:
            raise InvalidArgumentError(
                "Invalid HTTP version. Must be one of: 1.0, 1.1, 2.0, 2."
            )
        object.__setattr__(
            self, "headers", MappingProxyType(normalize_headers(self.headers))
        )
        if not isinstance(self.body, Stream):
            raise InvalidArgumentError("Message body must be a Stream instance.")

    # =========================================================================
    # PROTOCOL VERSION
    # =========================================================================

    def with_protocol_version(self: M, version: str) -> M:
        """
        Return a copy with the given HTTP protocol version.

        Raises:
            InvalidArgumentError: Unless version is 1.0, 1.1, 2.0 or 2.
        """
        if version not in PROTOCOL_VERSIONS:
            raise InvalidArgumentError(
                "Invalid HTTP version. Must be one of: 1.0, 1.1, 2.0, 2."
            )
        return replace(self, protocol_version=version)

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_headers(self) -> Dict[str, List[str]]:
        """Return all headers as a fresh dict of name -> list of values."""
        return {name: list(values) for name, values in self.headers.items()}

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case- and separator-insensitive)."""
        return validate_header_name(name) in self.headers

    def get_header(self, name: str) -> List[str]:
        """
        Get all values of a header.

        Returns:
            List of values, or an empty list if the header is absent.
        """
        return list(self.headers.get(validate_header_name(name), ()))

    def get_header_line(self, name: str) -> str:
        """
        Get a header's values joined with ", ".

        Returns an empty string if the header is absent.
        """
        return ", ".join(self.get_header(name))

    # =========================================================================
    # HEADER MUTATORS (return copies)
    # =========================================================================

    def with_header(self: M, name: str, value: Any) -> M:
        """Return a copy where value replaces every value of header name."""
        key = validate_header_name(name)
        values = validate_header_value(value)
        return self._with_headers({**self.headers, key: values})

    def with_added_header(self: M, name: str, value: Any) -> M:
        """
        Return a copy with value appended to header name.

        Behaves like with_header() when the header is absent. Existing
        values are kept; duplicates are not removed.
        """
        key = validate_header_name(name)
        values = validate_header_value(value)
        if key not in self.headers:
            return self.with_header(key, values)
        return self._with_headers({**self.headers, key: self.headers[key] + values})

    def without_header(self: M, name: str) -> M:
        """Return a copy without header name (a plain copy if absent)."""
        key = validate_header_name(name)
        headers = {k: v for k, v in self.headers.items() if k != key}
        return self._with_headers(headers)

    def _with_headers(self: M, headers: Dict[str, Tuple[str, ...]]) -> M:
        return replace(self, headers=headers)

    # =========================================================================
    # BODY
    # =========================================================================

    def with_body(self: M, body: Stream) -> M:
        """Return a copy with a different body stream."""
        if not isinstance(body, Stream):
            raise InvalidArgumentError("Message body must be a Stream instance.")
        return replace(self, body=body)
