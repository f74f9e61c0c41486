"""
=============================================================================
SERVER ENVIRONMENT SNAPSHOT
=============================================================================

Everything a ServerRequest is built from, gathered in one immutable
record so that request construction never reads process-wide state.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          Environment                               │
    ├──────────────────┬──────────────────────────────────────────────────┤
    │ server           │ REQUEST_METHOD, REQUEST_URI, HTTP_HOST,          │
    │                  │ SERVER_PORT, HTTP_* headers, CONTENT_TYPE, ...   │
    │ query            │ decoded query string                             │
    │ cookies          │ decoded Cookie header                            │
    │ form             │ decoded urlencoded / multipart form fields       │
    │ files            │ raw upload groups (tmp_name, size, error, ...)   │
    │ body             │ raw request body as a seekable Stream            │
    │ request_headers  │ optional callable returning the web server's     │
    │                  │ own view of the request headers                  │
    └──────────────────┴──────────────────────────────────────────────────┘

Tests build an Environment by hand. Applications running under a WSGI
server use Environment.from_wsgi(environ).

=============================================================================
WSGI TRANSLATION
=============================================================================

    wsgi.url_scheme=https          → REQUEST_SCHEME=https, HTTPS=on
    SCRIPT_NAME + PATH_INFO        → REQUEST_URI (with ?QUERY_STRING)
    Authorization: Basic dTpw      → AUTH_USER=u, AUTH_PASSWORD=p
    QUERY_STRING "a=1&b[]=2&b[]=3" → {"a": "1", "b": ["2", "3"]}
    HTTP_COOKIE "sid=abc"          → {"sid": "abc"}
    wsgi.input                     → body (CONTENT_LENGTH bytes)

Multipart file parts are written to temporary files; deleting them (or
moving them with UploadedFile.move_to) is up to the application.

=============================================================================
"""

import base64
import binascii
import logging
import tempfile
from dataclasses import dataclass, field
from email.parser import BytesParser
from email.policy import HTTP
from email.utils import collapse_rfc2231_value
from http.cookies import CookieError, SimpleCookie
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, quote

from .stream import Stream
from .uploaded_file import UploadErrorStatus


logger = logging.getLogger(__name__)

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM = "multipart/form-data"


@dataclass(frozen=True)
class Environment:
    """
    Immutable snapshot of the inbound exchange.

    Attributes:
        server: Server variables (CGI/WSGI style keys, string values).
        query: Decoded query parameters.
        cookies: Decoded cookies.
        form: Decoded form fields of the body.
        files: Raw upload groups keyed by field name.
        body: The raw request body.
        request_headers: Optional callable returning the request headers
            as seen by the web server. Only consulted to recover an
            Authorization header the server kept out of `server`.
    """

    server: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    form: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)
    body: Stream = field(default_factory=Stream.from_bytes)
    request_headers: Optional[Callable[[], Mapping[str, str]]] = None

    @classmethod
    def from_wsgi(cls, environ: Mapping[str, Any]) -> "Environment":
        """
        Build a snapshot from a WSGI environ (PEP 3333).

        Reads CONTENT_LENGTH bytes from wsgi.input once; the body is kept
        in memory so it can be read again later.
        """
        server = {k: v for k, v in environ.items() if isinstance(v, str)}

        scheme = environ.get("wsgi.url_scheme", "http")
        server.setdefault("REQUEST_SCHEME", scheme)
        if scheme == "https":
            server.setdefault("HTTPS", "on")

        server.setdefault("REQUEST_URI", _request_uri(server))
        server.update({k: v for k, v in _basic_auth(server).items() if k not in server})

        data = _read_body(environ)
        content_type = server.get("CONTENT_TYPE", "")
        media_type = content_type.split(";")[0].strip().lower()

        form: Dict[str, Any] = {}
        files: Dict[str, Any] = {}
        if media_type == FORM_URLENCODED:
            form = parse_params(data.decode("utf-8", errors="replace"))
        elif media_type == MULTIPART_FORM:
            form, files = parse_multipart(content_type, data)

        return cls(
            server=server,
            query=parse_params(server.get("QUERY_STRING", "")),
            cookies=parse_cookies(server.get("HTTP_COOKIE", "")),
            form=form,
            files=files,
            body=Stream.from_bytes(data),
        )


# =============================================================================
# WSGI HELPERS
# =============================================================================

def _request_uri(server: Mapping[str, str]) -> str:
    # PEP 3333 strings are latin-1 decoded bytes.
    path = server.get("SCRIPT_NAME", "") + server.get("PATH_INFO", "")
    uri = quote(path.encode("latin-1"), safe="/;=,:@&$+!*'()~") or "/"
    query = server.get("QUERY_STRING", "")
    return f"{uri}?{query}" if query else uri


def _basic_auth(server: Mapping[str, str]) -> Dict[str, str]:
    scheme, _, credentials = server.get("HTTP_AUTHORIZATION", "").partition(" ")
    if scheme.lower() != "basic" or not credentials:
        return {}

    try:
        decoded = base64.b64decode(credentials.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.debug("Ignoring malformed Basic Authorization header")
        return {}

    user, _, password = decoded.partition(":")
    return {"AUTH_USER": user, "AUTH_PASSWORD": password}


def _read_body(environ: Mapping[str, Any]) -> bytes:
    stream = environ.get("wsgi.input")
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if stream is None or length <= 0:
        return b""
    return stream.read(length)


# =============================================================================
# DECODERS
# =============================================================================

def parse_params(query_string: str) -> Dict[str, Any]:
    """
    Decode a query string or urlencoded form.

    Repeated plain keys keep the last value; "name[]" keys collect every
    value into a list under "name".
    """
    params: Dict[str, Any] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        _assign(params, key, value)
    return params


def parse_cookies(cookie_header: str) -> Dict[str, str]:
    """Decode a Cookie header into a name -> value dict."""
    if not cookie_header:
        return {}

    cookie = SimpleCookie()
    try:
        cookie.load(cookie_header)
    except CookieError:
        logger.warning("Ignoring malformed Cookie header")
        return {}
    return {name: morsel.value for name, morsel in cookie.items()}


def parse_multipart(content_type: str, data: bytes) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Decode a multipart/form-data body.

    Returns:
        (form, files): plain fields, and raw upload groups. File parts
        are spooled to temporary files named in each group's tmp_name.
    """
    message = BytesParser(policy=HTTP).parsebytes(
        b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + data
    )

    form: Dict[str, Any] = {}
    files: Dict[str, Any] = {}
    if not message.is_multipart():
        return form, files

    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if isinstance(name, tuple):
            name = collapse_rfc2231_value(name)
        if not name:
            continue

        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()

        if filename is None:
            charset = part.get_content_charset() or "utf-8"
            _assign(form, name, payload.decode(charset, errors="replace"))
            continue

        group = _spool_upload(payload, filename, part.get_content_type())
        if name.endswith("[]"):
            collected = files.setdefault(name[:-2], {k: [] for k in group})
            for key, value in group.items():
                collected[key].append(value)
        else:
            files[name] = group

    return form, files


def _assign(target: Dict[str, Any], name: str, value: str) -> None:
    if not name.endswith("[]"):
        target[name] = value
        return

    bucket = target.get(name[:-2])
    if not isinstance(bucket, list):
        bucket = target[name[:-2]] = []
    bucket.append(value)


def _spool_upload(payload: bytes, filename: str, media_type: str) -> Dict[str, Any]:
    if not filename:
        # Field submitted without choosing a file.
        return {
            "tmp_name": "",
            "size": 0,
            "error": int(UploadErrorStatus.NO_FILE),
            "name": "",
            "type": "",
        }

    try:
        with tempfile.NamedTemporaryFile(prefix="httpexchange-", delete=False) as handle:
            handle.write(payload)
    except OSError as exc:
        logger.warning(f"Could not store upload {filename!r}: {exc}")
        return {
            "tmp_name": "",
            "size": len(payload),
            "error": int(UploadErrorStatus.CANT_WRITE),
            "name": filename,
            "type": media_type,
        }

    return {
        "tmp_name": handle.name,
        "size": len(payload),
        "error": int(UploadErrorStatus.OK),
        "name": filename,
        "type": media_type,
    }
