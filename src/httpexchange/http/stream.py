"""
=============================================================================
MESSAGE BODY STREAM
=============================================================================

Stream wraps exactly one underlying binary resource (an open file object,
io.BytesIO, a WSGI input, ...) and exposes position-aware read/write/seek
operations with uniform error reporting.

=============================================================================
OWNERSHIP
=============================================================================

    Stream(path or file object)
         │
         │  read()/write()/seek()  ── operate on the resource
         │
         ├── detach()  ──►  returns the resource, Stream becomes inert
         │                  (every later I/O call raises StreamError)
         │
         └── close()   ──►  detach() + close the resource

Capabilities are never asserted by the caller: readability, writability
and seekability are asked from the resource itself, so a file opened
with "rb" is readable but not writable, a pipe is not seekable, etc.

Streams are shared by reference between a message and every copy derived
from it with a with_* call. They are NOT thread-safe.

=============================================================================
"""

import io
import os
from typing import Any, Dict, Iterator, Optional, Union

from .errors import InvalidArgumentError, StreamError


PathType = Union[str, "os.PathLike[str]"]


class Stream:
    """
    Byte stream backing an HTTP message body.

    Args:
        stream: A filesystem path to open, or an already opened file-like
            object (anything with read() or write()).
        mode: Mode used when stream is a path. Text modes are upgraded to
            binary ("r" opens as "rb").

    Raises:
        InvalidArgumentError: If the path cannot be opened or the object
            is neither a path nor a file-like object.
    """

    def __init__(self, stream: Any, mode: str = "r"):
        self._eof = False

        if isinstance(stream, (str, os.PathLike)):
            if "b" not in mode:
                mode = mode.replace("t", "") + "b"
            try:
                self._resource = open(stream, mode)
            except (OSError, ValueError) as exc:
                raise InvalidArgumentError(
                    "Invalid file provided for stream. "
                    "Must be a valid path with valid permissions."
                ) from exc
            return

        if hasattr(stream, "read") or hasattr(stream, "write"):
            self._resource = stream
            return

        raise InvalidArgumentError(
            "Invalid stream provided. Must be a path or a file-like object."
        )

    @classmethod
    def from_bytes(cls, data: bytes = b"") -> "Stream":
        """Create a readable, writable, seekable in-memory stream."""
        return cls(io.BytesIO(data))

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "Stream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # OWNERSHIP
    # =========================================================================

    @property
    def detached(self) -> bool:
        """True once the resource was detached or closed."""
        return self._resource is None

    def close(self) -> None:
        """Close the underlying resource. Closing twice is a no-op."""
        if self._resource is None:
            return
        resource = self.detach()
        resource.close()

    def detach(self) -> Any:
        """
        Separate the underlying resource from the stream.

        Returns:
            The resource (or None if already detached). The stream is
            unusable afterwards.
        """
        resource, self._resource = self._resource, None
        return resource

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    def is_readable(self) -> bool:
        return self._ask("readable")

    def is_writable(self) -> bool:
        return self._ask("writable")

    def is_seekable(self) -> bool:
        return self._ask("seekable")

    def _ask(self, capability: str) -> bool:
        if self._resource is None:
            return False
        probe = getattr(self._resource, capability, None)
        if probe is None:
            return False
        try:
            return bool(probe())
        except ValueError:
            # Closed file objects raise ValueError on every call.
            return False

    # =========================================================================
    # POSITION
    # =========================================================================

    def get_size(self) -> Optional[int]:
        """
        Get the size of the stream in bytes, if known.

        Returns None when the stream is detached or its size cannot be
        determined (pipes, sockets).
        """
        resource = self._resource
        if resource is None:
            return None

        if isinstance(resource, io.BytesIO):
            with resource.getbuffer() as view:
                return view.nbytes

        try:
            if self.is_writable():
                resource.flush()
            return os.fstat(resource.fileno()).st_size
        except (AttributeError, OSError, ValueError):
            pass

        if self.is_seekable():
            position = resource.tell()
            end = resource.seek(0, io.SEEK_END)
            resource.seek(position)
            return end
        return None

    def tell(self) -> int:
        """Return the current position of the read/write pointer."""
        resource = self._require("tell position")
        try:
            return resource.tell()
        except (OSError, ValueError) as exc:
            raise StreamError("Error occurred during tell operation.") from exc

    def eof(self) -> bool:
        """Return True when the pointer is at the end of the stream."""
        self._require("tell position")
        if self.is_seekable():
            size = self.get_size()
            if size is not None:
                return self.tell() >= size
        return self._eof

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> bool:
        """
        Move the pointer to a new position.

        Args:
            offset: Stream offset.
            whence: io.SEEK_SET, io.SEEK_CUR or io.SEEK_END.

        Raises:
            StreamError: If detached, not seekable, or the seek fails.
        """
        resource = self._require("seek position")
        if not self.is_seekable():
            raise StreamError("Stream is not seekable.")
        try:
            resource.seek(offset, whence)
        except (OSError, ValueError) as exc:
            raise StreamError("Error seeking within stream.") from exc
        self._eof = False
        return True

    def rewind(self) -> bool:
        """Seek to the beginning of the stream."""
        return self.seek(0)

    # =========================================================================
    # I/O
    # =========================================================================

    def write(self, data: bytes) -> int:
        """
        Write bytes to the stream.

        Returns:
            Number of bytes written.
        """
        resource = self._require("write")
        if not self.is_writable():
            raise StreamError("Stream is not writable.")
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            written = resource.write(data)
        except (OSError, ValueError) as exc:
            raise StreamError("Error writing to stream.") from exc
        return len(data) if written is None else written

    def read(self, length: int) -> bytes:
        """
        Read up to length bytes from the stream.

        Returns fewer bytes if the end of the stream is reached first.
        """
        resource = self._require("read")
        if not self.is_readable():
            raise StreamError("Stream is not readable.")
        try:
            data = resource.read(length)
        except (OSError, ValueError) as exc:
            raise StreamError("Error reading stream.") from exc
        if len(data) < length:
            self._eof = True
        return data

    def get_contents(self) -> bytes:
        """Read everything from the current position to the end."""
        resource = self._require("read")
        if not self.is_readable():
            raise StreamError("Stream is not readable.")
        try:
            data = resource.read()
        except (OSError, ValueError) as exc:
            raise StreamError("Error reading from stream.") from exc
        self._eof = True
        return data

    def iter_chunks(self, chunk_size: int = 4096) -> Iterator[bytes]:
        """Yield the stream contents from the beginning, chunk by chunk."""
        if self.is_seekable():
            self.rewind()
        while True:
            chunk = self.read(chunk_size)
            if chunk:
                yield chunk
            if len(chunk) < chunk_size:
                break

    def get_metadata(self, key: Optional[str] = None) -> Any:
        """
        Describe the underlying resource.

        Args:
            key: Return only this entry. None returns the whole mapping.

        Returns:
            Mapping with "mode", "uri", "readable", "writable", "seekable"
            and "closed" entries, or the value for key (None if the key
            is unknown).
        """
        if key is not None and not isinstance(key, str):
            raise InvalidArgumentError(
                "Invalid type of argument; must be a string or None."
            )

        metadata = self._metadata()
        if key is None:
            return metadata
        return metadata.get(key)

    def _metadata(self) -> Dict[str, Any]:
        resource = self._resource
        if resource is None:
            return {}
        return {
            "mode": getattr(resource, "mode", None),
            "uri": getattr(resource, "name", None),
            "readable": self.is_readable(),
            "writable": self.is_writable(),
            "seekable": self.is_seekable(),
            "closed": getattr(resource, "closed", False),
        }

    def _require(self, action: str) -> Any:
        if self._resource is None:
            raise StreamError(f"No resource available, can't {action}.")
        return self._resource

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def __bytes__(self) -> bytes:
        """Return the whole stream, reading from the beginning."""
        self._require("read")
        if not self.is_readable():
            raise StreamError("Stream is not readable.")
        if self.is_seekable():
            self.rewind()
        return self.get_contents()

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        if self._resource is None:
            return "<Stream detached>"
        return f"<Stream {self._metadata()['uri'] or type(self._resource).__name__}>"
