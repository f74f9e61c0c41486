"""
=============================================================================
UPLOADED FILES
=============================================================================

UploadedFile describes one file received in a multipart/form-data request
and lets the application move it to its final location exactly once.

=============================================================================
LIFECYCLE
=============================================================================

        UploadedFile(moved=False)
              │
              ├── get_stream()  ──► Stream over the temporary file
              │
              └── move_to(path) ──► moved=True
                                      │
                                      ├── get_stream() → UploadError
                                      └── move_to()    → UploadError

A file that failed to upload (error != UploadErrorStatus.OK) can still be
inspected (size, error, client_filename, ...) but never streamed or moved.

=============================================================================
RAW UPLOAD GROUPS
=============================================================================

The server environment describes uploads as groups of parallel fields:

    {"avatar": {"tmp_name": "/tmp/upload-7f3a", "size": 1024, "error": 0,
                "name": "me.png", "type": "image/png"}}

For multi-file inputs ("photos[]") every field of the group is itself a
list:

    {"photos": {"tmp_name": ["/tmp/a", "/tmp/b"], "size": [1, 2], ...}}

normalize_uploaded_files() turns both shapes into trees whose leaves are
UploadedFile instances:

    {"avatar": UploadedFile(...), "photos": [UploadedFile(...), UploadedFile(...)]}

=============================================================================
"""

import errno
import logging
import os
import shutil
from enum import IntEnum
from typing import Any, Mapping, Optional

from ..config import ExchangeConfig
from .errors import InvalidArgumentError, UploadError
from .stream import Stream


logger = logging.getLogger(__name__)


class UploadErrorStatus(IntEnum):
    """Outcome of a file upload, as reported by the web server."""

    OK = 0              # Upload succeeded
    INI_SIZE = 1        # Exceeds the server's maximum upload size
    FORM_SIZE = 2       # Exceeds the MAX_FILE_SIZE form field
    PARTIAL = 3         # Only part of the file arrived
    NO_FILE = 4         # No file was sent for the field
    NO_TMP_DIR = 6      # Server has no temporary directory
    CANT_WRITE = 7      # Server failed writing the file to disk
    EXTENSION = 8       # A server extension stopped the upload


class UploadedFile:
    """
    A single uploaded file.

    Args:
        source: Path of the temporary file, an open binary file object,
            or a Stream.
        size: File size in bytes as reported by the client.
        error: An UploadErrorStatus value.
        client_filename: File name sent by the client. Do not trust it.
        client_media_type: Media type sent by the client. Do not trust it.
        config: Settings for move_to() (copy buffer size).

    Raises:
        InvalidArgumentError: On invalid argument types or values.
    """

    def __init__(
        self,
        source: Any,
        size: int,
        error: int,
        client_filename: Optional[str] = None,
        client_media_type: Optional[str] = None,
        config: Optional[ExchangeConfig] = None,
    ):
        self._file: Optional[str] = None
        self._stream: Optional[Stream] = None
        self._moved = False
        self._config = config or ExchangeConfig()

        if isinstance(source, (str, os.PathLike)):
            self._file = os.fspath(source)
        elif isinstance(source, Stream):
            self._stream = source
        elif hasattr(source, "read"):
            self._stream = Stream(source)
        else:
            raise InvalidArgumentError("Invalid stream or file provided for UploadedFile.")

        if isinstance(size, bool) or not isinstance(size, int):
            raise InvalidArgumentError("Size of uploaded file must be an integer.")
        self._size = size

        try:
            self._error = UploadErrorStatus(error)
        except ValueError:
            raise InvalidArgumentError(
                "Error status of uploaded file must be an UploadErrorStatus value."
            ) from None

        if client_filename is not None and not isinstance(client_filename, str):
            raise InvalidArgumentError(
                "Invalid filename of uploaded file. Must be None or string."
            )
        self._client_filename = client_filename

        if client_media_type is not None and not isinstance(client_media_type, str):
            raise InvalidArgumentError(
                "Invalid client media type of uploaded file. Must be None or string."
            )
        self._client_media_type = client_media_type

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def size(self) -> int:
        return self._size

    @property
    def error(self) -> UploadErrorStatus:
        return self._error

    @property
    def client_filename(self) -> Optional[str]:
        return self._client_filename

    @property
    def client_media_type(self) -> Optional[str]:
        return self._client_media_type

    @property
    def moved(self) -> bool:
        return self._moved

    @property
    def stream(self) -> Stream:
        return self.get_stream()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def get_stream(self) -> Stream:
        """
        Get a stream over the uploaded file.

        A path source is opened lazily on the first call; later calls
        return the same Stream.

        Raises:
            UploadError: If the upload failed or the file was moved.
        """
        if self._error is not UploadErrorStatus.OK:
            raise UploadError("Cannot retrieve stream due to upload error.")
        if self._moved:
            raise UploadError("Cannot retrieve stream after it has already been moved.")

        if self._stream is None:
            self._stream = Stream(self._file)
        return self._stream

    def move_to(self, target_path: Any) -> None:
        """
        Move the uploaded file to target_path. Can only succeed once.

        Path sources are renamed (os.replace, or shutil.move across
        filesystems). Stream sources are copied from their beginning in
        config.upload_chunk_size chunks.

        Raises:
            UploadError: If the upload failed, the file was already moved,
                or the move itself fails.
            InvalidArgumentError: If target_path is not a non-empty path.
        """
        if self._error is not UploadErrorStatus.OK:
            raise UploadError("Cannot move file due to upload error.")

        if not isinstance(target_path, (str, os.PathLike)):
            raise InvalidArgumentError(
                "Invalid path provided for move operation. Path must be a string."
            )
        target_path = os.fspath(target_path)
        if not target_path:
            raise InvalidArgumentError(
                "Invalid path provided for move operation. Path must be a non-empty string."
            )

        if self._moved:
            raise UploadError("File already moved!")

        if self._file is not None:
            self._move_file(target_path)
        else:
            self._write_from_stream(target_path)

        self._moved = True
        logger.info(f"Moved uploaded file {self._client_filename!r} to {target_path}")

    def _move_file(self, target_path: str) -> None:
        try:
            os.replace(self._file, target_path)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise UploadError(
                    "Error occurred while moving uploaded file. "
                    "Check whether the directory exists and its write permissions."
                ) from exc
            try:
                shutil.move(self._file, target_path)
            except OSError as move_exc:
                raise UploadError("Error occurred while moving uploaded file.") from move_exc

    def _write_from_stream(self, target_path: str) -> None:
        stream = self.get_stream()
        try:
            with open(target_path, "wb") as handle:
                for chunk in stream.iter_chunks(self._config.upload_chunk_size):
                    handle.write(chunk)
        except OSError as exc:
            raise UploadError("Unable to write to the final path.") from exc

    def __repr__(self) -> str:
        return (
            f"UploadedFile(client_filename={self._client_filename!r}, "
            f"size={self._size}, error={self._error.name}, moved={self._moved})"
        )


# =============================================================================
# UPLOAD TREE NORMALIZATION
# =============================================================================

_GROUP_FIELDS = ("tmp_name", "size", "error", "name", "type")


def normalize_uploaded_files(files: Any, config: Optional[ExchangeConfig] = None) -> Any:
    """
    Turn a nested upload description into a tree of UploadedFile leaves.

    Leaves may be UploadedFile instances (kept as-is) or raw groups with
    tmp_name/size/error/name/type fields. Mappings and lists in between
    are walked recursively and keep their shape.

    Raises:
        InvalidArgumentError: On a leaf that is neither.
    """
    if isinstance(files, Mapping):
        return {key: _normalize_value(value, config) for key, value in files.items()}
    if isinstance(files, (list, tuple)):
        return [_normalize_value(value, config) for value in files]
    raise InvalidArgumentError("Uploaded files must be a mapping or a list.")


def _normalize_value(value: Any, config: Optional[ExchangeConfig]) -> Any:
    if isinstance(value, UploadedFile):
        return value
    if isinstance(value, Mapping) and "tmp_name" in value:
        return _create_from_group(value, config)
    if isinstance(value, (Mapping, list, tuple)):
        return normalize_uploaded_files(value, config)
    raise InvalidArgumentError("Invalid value in uploaded files tree.")


def _create_from_group(group: Mapping[str, Any], config: Optional[ExchangeConfig]) -> Any:
    tmp_name = group["tmp_name"]

    if isinstance(tmp_name, (list, tuple)):
        return [
            _create_from_group(_group_entry(group, index), config)
            for index in range(len(tmp_name))
        ]
    if isinstance(tmp_name, Mapping):
        return {
            key: _create_from_group(_group_entry(group, key), config)
            for key in tmp_name
        }

    return UploadedFile(
        tmp_name,
        group.get("size", 0),
        group.get("error", UploadErrorStatus.OK),
        group.get("name"),
        group.get("type"),
        config=config,
    )


def _group_entry(group: Mapping[str, Any], key: Any) -> dict:
    entry = {}
    for name in _GROUP_FIELDS:
        try:
            entry[name] = group[name][key]
        except (KeyError, IndexError, TypeError):
            continue
    return entry


def validate_uploaded_files(files: Any) -> None:
    """
    Check that every leaf of an upload tree is an UploadedFile.

    Raises:
        InvalidArgumentError: On the first invalid leaf.
    """
    if not isinstance(files, (Mapping, list, tuple)):
        raise InvalidArgumentError("Invalid structure of uploaded files.")

    values = files.values() if isinstance(files, Mapping) else files

    for value in values:
        if isinstance(value, (Mapping, list, tuple)):
            validate_uploaded_files(value)
        elif not isinstance(value, UploadedFile):
            raise InvalidArgumentError("Invalid structure of uploaded files.")
