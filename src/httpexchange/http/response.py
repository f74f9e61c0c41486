"""
=============================================================================
HTTP RESPONSE
=============================================================================

Immutable response: status code + reason phrase on top of the Message
envelope, plus send() to write it out.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─ STATUS LINE ──────────────────────────────────────────────────────┐
    │    HTTP/1.1 404 Not Found\r\n                                      │
    │    ────┬─── ─┬─ ────┬────                                          │
    │     Version Code  Phrase                                           │
    └────────────────────────────────────────────────────────────────────┘
    ┌─ HEADERS ──────────────────────────────────────────────────────────┐
    │    Content-Type: application/json\r\n                              │
    │    Vary: Accept, Accept-Encoding\r\n    ← multi-value joined ", "  │
    └────────────────────────────────────────────────────────────────────┘
    \r\n
    ┌─ BODY ─────────────────────────────────────────────────────────────┐
    │    {"error": "not found"}               ← streamed in chunks       │
    └────────────────────────────────────────────────────────────────────┘

The order is fixed: status line, headers, blank line, body. Cookie
headers are never emitted.

=============================================================================
"""

import logging
import sys
from dataclasses import dataclass, replace
from typing import Any, BinaryIO, Iterator, Optional

from .errors import InvalidArgumentError
from .message import Message
from .status_codes import HTTPStatus, is_registered, reason_phrase as standard_phrase


logger = logging.getLogger(__name__)

# Headers never written by send().
SKIPPED_HEADERS = frozenset({"Cookie"})


@dataclass(frozen=True, eq=False)
class Response(Message):
    """
    Immutable HTTP response.

    Attributes:
        status_code: Three digit status code (default 200).
        reason_phrase: Explicit phrase, or the standard phrase for
            status_code when left empty.

    Example:
        response = (
            Response(body=Stream.from_bytes(b'{"ok": true}'))
            .with_status(201)
            .with_header("Content-Type", "application/json")
        )
        response.send()
    """

    status_code: int = HTTPStatus.OK
    reason_phrase: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "status_code", self._check_status_code(self.status_code))
        if not isinstance(self.reason_phrase, str):
            raise InvalidArgumentError("Reason phrase must be a string.")
        if not self.reason_phrase:
            object.__setattr__(self, "reason_phrase", standard_phrase(self.status_code))

    # =========================================================================
    # STATUS
    # =========================================================================

    def with_status(self, code: Any, reason_phrase: str = "") -> "Response":
        """
        Return a copy with a new status code and reason phrase.

        Args:
            code: Integer status code or a numeric string ("404").
            reason_phrase: Custom phrase. Empty uses the standard phrase.

        Raises:
            InvalidArgumentError: If the code is not numeric or not a
                valid status code, or the phrase is not a string.
        """
        if not isinstance(reason_phrase, str):
            raise InvalidArgumentError("Reason phrase must be a string.")
        code = self._check_status_code(code)
        return replace(self, status_code=code, reason_phrase=reason_phrase)

    def _check_status_code(self, code: Any) -> int:
        if isinstance(code, str) and code.strip().isdigit():
            code = int(code)
        if isinstance(code, bool) or not isinstance(code, int):
            raise InvalidArgumentError("Status code must be a numeric.")

        if not 100 <= code <= 599:
            raise InvalidArgumentError(
                "Status code must be a valid 3-digit integer (100-599). "
                "See: https://tools.ietf.org/html/rfc7231."
            )
        if self.config.strict_status_codes and not is_registered(code):
            raise InvalidArgumentError(f"Status code {code} is not a registered status code.")

        return HTTPStatus(code) if is_registered(code) else code

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 200 OK"."""
        return f"HTTP/{self.protocol_version} {int(self.status_code)} {self.reason_phrase}".rstrip()

    # =========================================================================
    # EMISSION
    # =========================================================================

    def head_bytes(self) -> bytes:
        """Status line and headers, terminated by the blank line."""
        lines = [self.status_line]
        for name in self.headers:
            if name in SKIPPED_HEADERS:
                continue
            lines.append(f"{name}: {self.get_header_line(name)}")
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("latin-1")

    def iter_bytes(self, chunk_size: int = 8192) -> Iterator[bytes]:
        """Yield the serialized response: head first, then body chunks."""
        yield self.head_bytes()
        if self.body.is_readable():
            yield from self.body.iter_chunks(chunk_size)

    def to_bytes(self) -> bytes:
        """The complete serialized response."""
        return b"".join(self.iter_bytes())

    def send(self, sink: Optional[BinaryIO] = None) -> None:
        """
        Write the response to sink (default: the process's stdout).

        Sending leaves the response unchanged, so sending twice writes the
        same bytes twice. Write errors propagate to the caller.
        """
        if sink is None:
            sink = sys.stdout.buffer

        for chunk in self.iter_bytes():
            sink.write(chunk)
        sink.flush()

        logger.debug(f"Sent response: {self.status_line}")
