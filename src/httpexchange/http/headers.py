"""
=============================================================================
HEADER NAME AND VALUE HELPERS
=============================================================================

Helpers shared by every message type for storing headers.

=============================================================================
CANONICAL HEADER NAMES
=============================================================================

HTTP header names are case-insensitive (RFC 7230 section 3.2). Instead of
lower-casing on every lookup, all names are folded once into a canonical
"Header-Case" form that is used both as the storage key and the lookup
key:

    ┌──────────────────────┬──────────────────────┐
    │ Given                │ Stored as            │
    ├──────────────────────┼──────────────────────┤
    │ content-type         │ Content-Type         │
    │ CONTENT_TYPE         │ Content-Type         │
    │ x_forwarded_for      │ X-Forwarded-For      │
    │ X-FORWARDED-FOR      │ X-Forwarded-For      │
    └──────────────────────┴──────────────────────┘

The underscore form matters because the server environment exposes
headers as HTTP_X_FORWARDED_FOR style keys.

=============================================================================
"""

import re
from typing import Any, Dict, Mapping, Tuple

from .errors import InvalidArgumentError


# Environment keys that carry request headers without the HTTP_ prefix.
SPECIAL_HEADER_KEYS = frozenset({"CONTENT_TYPE", "CONTENT_LENGTH", "CONTENT_MD5"})

# Prefix the server environment puts in front of forwarded request headers.
HEADER_KEY_PREFIX = "HTTP_"

_LINE_BREAK = re.compile(r"[\r\n]")


def normalize_header_name(name: str) -> str:
    """
    Fold a header name into its canonical form.

    Lower-cases the name, treats "_" and "-" as word separators,
    upper-cases the first letter of every word and joins the words
    with "-".

    Example:
        >>> normalize_header_name("x_forwarded_for")
        'X-Forwarded-For'
    """
    words = name.lower().replace("_", " ").replace("-", " ").split(" ")
    return "-".join(word[:1].upper() + word[1:] for word in words)


def validate_header_name(name: Any) -> str:
    """Return the canonical name, or raise if name is not a valid header name."""
    if not isinstance(name, str):
        raise InvalidArgumentError(
            'Invalid argument. Header name must be a string (e.g., "Host").'
        )
    if not name or ":" in name or not _is_field_text(name):
        raise InvalidArgumentError(
            "Invalid header name. Must be non-empty latin-1 text without ':', CR or LF."
        )
    return normalize_header_name(name)


def validate_header_value(value: Any) -> Tuple[str, ...]:
    """
    Coerce a header value into the stored tuple-of-strings form.

    A single string becomes a one-element tuple. A list or tuple must
    contain at least one string and strings only. Every string must be
    latin-1 encodable and contain no CR or LF.

    Raises:
        InvalidArgumentError: If value is neither a string nor a
            non-empty sequence of strings, or a string is not a valid
            header field value.
    """
    if isinstance(value, str):
        values: Tuple[str, ...] = (value,)
    elif isinstance(value, (list, tuple)) and value and all(
        isinstance(item, str) for item in value
    ):
        values = tuple(value)
    else:
        raise InvalidArgumentError(
            "Invalid header value. Header value must be a string or a "
            "non-empty list of strings."
        )

    if not all(_is_field_text(item) for item in values):
        raise InvalidArgumentError(
            "Invalid header value. Must be latin-1 text without CR or LF."
        )
    return values


def _is_field_text(text: str) -> bool:
    if _LINE_BREAK.search(text):
        return False
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def normalize_headers(headers: Mapping[Any, Any]) -> Dict[str, Tuple[str, ...]]:
    """
    Validate a whole header mapping.

    Keys that fold to the same canonical name are merged in insertion
    order, so {"accept": "a", "Accept": "b"} keeps both values.
    """
    normalized: Dict[str, Tuple[str, ...]] = {}
    for name, value in headers.items():
        key = validate_header_name(name)
        normalized[key] = normalized.get(key, ()) + validate_header_value(value)
    return normalized


def headers_from_server(server: Mapping[str, Any]) -> Dict[str, Tuple[str, ...]]:
    """
    Extract request headers from a server environment snapshot.

    =========================================================================
    WHICH KEYS BECOME HEADERS
    =========================================================================

        HTTP_ACCEPT_LANGUAGE=en   →  Accept-Language: en
        CONTENT_TYPE=text/plain   →  Content-Type: text/plain
        CONTENT_LENGTH=12         →  Content-Length: 12
        SERVER_NAME=example.com   →  (not a header)

    Every extracted header carries exactly one value.
    =========================================================================
    """
    headers: Dict[str, Tuple[str, ...]] = {}
    for key, value in server.items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue

        if key.startswith(HEADER_KEY_PREFIX):
            headers[normalize_header_name(key[len(HEADER_KEY_PREFIX):])] = (value,)
        elif key in SPECIAL_HEADER_KEYS:
            headers[normalize_header_name(key)] = (value,)

    return headers
