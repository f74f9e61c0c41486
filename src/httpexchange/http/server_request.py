"""
=============================================================================
SERVER-SIDE REQUEST
=============================================================================

ServerRequest is the immutable snapshot of one inbound exchange, built
once from an Environment and then only derived from with with_* calls.

=============================================================================
CONSTRUCTION PIPELINE
=============================================================================

    Environment
         │
         ▼
    1. Server params ── snapshot; recover a hidden Authorization header
         │
         ▼
    2. Headers ──────── HTTP_* keys + CONTENT_TYPE/LENGTH/MD5
         │
         ▼
    3. URI ──────────── scheme, host, port, path, query, user info
         │
         ▼
    4. Method ───────── REQUEST_METHOD, as-is (not validated)
         │
         ▼
    5. Parsed body ──── form fields for POST forms, decoded JSON, or None
         │
         ▼
    6. Replaced method ─ upper-cased "_method" input field
         │
         ▼
    7. Query / cookies / uploaded files

Each step may use the result of the previous ones (the URI host comes
from the Host header extracted in step 2, the "_method" lookup in step 6
reads the body parsed in step 5).

=============================================================================
"""

import json
import logging
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..config import ExchangeConfig, PROTOCOL_VERSIONS
from .environment import Environment
from .errors import InvalidArgumentError
from .headers import headers_from_server
from .request import Request
from .stream import Stream
from .uploaded_file import normalize_uploaded_files, validate_uploaded_files
from .uri import Uri


logger = logging.getLogger(__name__)

_FORM_PATTERN = re.compile(r"(multipart/form-data)|(application/x-www-form-urlencoded)")
_JSON_PATTERN = re.compile(r"application/json")


@dataclass(frozen=True, eq=False)
class ServerRequest(Request):
    """
    Immutable server-side HTTP request.

    Build it with ServerRequest.from_environment() or
    ServerRequest.from_wsgi(); the constructor itself takes already
    derived values and is mainly useful in tests.

    Attributes:
        server_params: Read-only snapshot of the server variables.
        cookie_params: Cookies sent by the client.
        query_params: Decoded query string.
        uploaded_files: Tree of UploadedFile leaves.
        parsed_body: Decoded body (form fields, JSON value) or None.
        attributes: Values attached by the application (route params,
            authenticated user, ...).
    """

    server_params: Mapping[str, str] = field(default_factory=dict)
    cookie_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)
    uploaded_files: Mapping[str, Any] = field(default_factory=dict)
    parsed_body: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("server_params", "cookie_params", "query_params", "attributes"):
            object.__setattr__(self, name, _freeze(getattr(self, name), name))
        validate_uploaded_files(self.uploaded_files)
        object.__setattr__(self, "uploaded_files", _freeze(self.uploaded_files, "uploaded_files"))

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_environment(
        cls,
        environment: Environment,
        config: Optional[ExchangeConfig] = None,
    ) -> "ServerRequest":
        """
        Build a request from an environment snapshot.

        Example:
            request = ServerRequest.from_environment(Environment(server={
                "REQUEST_METHOD": "GET",
                "REQUEST_URI": "/items?x=1",
                "HTTP_HOST": "example.com",
                "SERVER_PORT": "80",
                "REQUEST_SCHEME": "http",
            }))
            str(request.uri)  # "http://example.com/items?x=1"

        Raises:
            InvalidArgumentError: If the environment describes an invalid
                URI (bad host, unsupported scheme) or upload tree.
        """
        config = config or ExchangeConfig()

        # 1-2. Server snapshot and headers
        server = normalize_server(environment.server, environment.request_headers)
        headers = headers_from_server(server)

        # 3. URI
        uri = uri_from_server(server, headers)

        # 4. Method
        method = server.get("REQUEST_METHOD", "")

        # 5. Parsed body
        content_type = ", ".join(headers.get("Content-Type", ()))
        parsed_body = parse_body(method, content_type, environment.form, environment.body)

        # 6. Replaced method
        query_params = dict(environment.query)
        replaced_method = str(_lookup_input("_method", query_params, parsed_body, "")).upper()

        # 7. Uploaded files
        uploaded_files = normalize_uploaded_files(environment.files, config)

        request = cls(
            protocol_version=_protocol_version(server, config),
            headers=headers,
            body=environment.body,
            config=config,
            method=method,
            uri=uri,
            replaced_method=replaced_method,
            server_params=server,
            cookie_params=dict(environment.cookies),
            query_params=query_params,
            uploaded_files=uploaded_files,
            parsed_body=parsed_body,
        )
        logger.debug(f"Built server request: {method} {request.request_target}")
        return request

    @classmethod
    def from_wsgi(
        cls,
        environ: Mapping[str, Any],
        config: Optional[ExchangeConfig] = None,
    ) -> "ServerRequest":
        """Build a request from a WSGI environ."""
        return cls.from_environment(Environment.from_wsgi(environ), config)

    # =========================================================================
    # SERVER PARAMS
    # =========================================================================

    def get_from_server(self, name: str) -> str:
        """
        Look up a server variable, "" if absent.

        The name is upper-cased and "-" becomes "_", so
        get_from_server("request-method") reads REQUEST_METHOD.
        """
        if not isinstance(name, str):
            raise InvalidArgumentError("Given value must be a string.")
        return self.server_params.get(name.upper().replace("-", "_"), "")

    def is_ajax(self) -> bool:
        """True for requests sent with X-Requested-With: XMLHttpRequest."""
        return self.get_header_line("X-Requested-With").lower() == "xmlhttprequest"

    # =========================================================================
    # INPUT
    # =========================================================================

    def input(self, name: Any, default: Any = None) -> Any:
        """
        Look up an input value, query string first, then parsed body.

        Args:
            name: Field name (string or integer).
            default: Returned when neither source has the field. Any
                value other than None counts as a default, including
                0, False and "".

        Returns:
            The value, the default, or "" when no default was given.
        """
        if isinstance(name, bool) or not isinstance(name, (str, int)):
            raise InvalidArgumentError(
                "Invalid argument. Input name must be a string or number."
            )
        return _lookup_input(name, self.query_params, self.parsed_body, default)

    # =========================================================================
    # PARAMETER MAPS (return copies)
    # =========================================================================

    def with_cookie_params(self, cookies: Mapping[str, Any]) -> "ServerRequest":
        return replace(self, cookie_params=_require_mapping(cookies, "Cookies"))

    def with_query_params(self, query: Mapping[str, Any]) -> "ServerRequest":
        return replace(self, query_params=_require_mapping(query, "Query params"))

    def with_uploaded_files(self, uploaded_files: Mapping[str, Any]) -> "ServerRequest":
        """
        Return a copy with a new upload tree.

        Raises:
            InvalidArgumentError: If any leaf is not an UploadedFile.
        """
        validate_uploaded_files(uploaded_files)
        return replace(self, uploaded_files=uploaded_files)

    def with_parsed_body(self, data: Any) -> "ServerRequest":
        """
        Return a copy with a new parsed body.

        Accepts None, mappings, sequences and arbitrary objects; rejects
        scalars (str, bytes, numbers, booleans).
        """
        if isinstance(data, (str, bytes, bytearray, int, float)):
            raise InvalidArgumentError("Parsed body must be a mapping, sequence, object or None.")
        return replace(self, parsed_body=data)

    # =========================================================================
    # ATTRIBUTES
    # =========================================================================

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(_attribute_name(name), default)

    def with_attribute(self, name: str, value: Any) -> "ServerRequest":
        name = _attribute_name(name)
        return replace(self, attributes={**self.attributes, name: value})

    def without_attribute(self, name: str) -> "ServerRequest":
        name = _attribute_name(name)
        attributes = {k: v for k, v in self.attributes.items() if k != name}
        return replace(self, attributes=attributes)


# =============================================================================
# CONSTRUCTION STEPS
# =============================================================================

def normalize_server(
    server: Mapping[str, str],
    request_headers: Optional[Callable[[], Mapping[str, str]]] = None,
) -> Dict[str, str]:
    """
    Copy the server variables, restoring a hidden Authorization header.

    Some web servers strip Authorization from the variables they pass on
    and only expose it through their own header lookup. When such a
    lookup is available and HTTP_AUTHORIZATION is missing, its value is
    copied in. A failing lookup is logged and ignored.
    """
    server = dict(server)
    if "HTTP_AUTHORIZATION" in server or request_headers is None:
        return server

    try:
        raw_headers = request_headers() or {}
    except Exception as exc:
        logger.warning(f"Request header lookup failed: {exc}")
        return server

    for name in ("Authorization", "authorization"):
        if name in raw_headers:
            server["HTTP_AUTHORIZATION"] = raw_headers[name]
            logger.debug("Restored Authorization header from web server lookup")
            break
    return server


def uri_from_server(server: Mapping[str, str], headers: Mapping[str, Tuple[str, ...]]) -> Uri:
    """
    Compose the request URI from server variables and headers.

    =========================================================================
    SOURCES
    =========================================================================

        scheme     https if REQUEST_SCHEME=https and HTTPS=on, else http
        host       Host header → HTTP_HOST → SERVER_NAME → ""
        port       SERVER_PORT
        path       REQUEST_URI up to "?"
        query      QUERY_STRING, else REQUEST_URI after "?"
        fragment   always "" (never sent to the server)
        user info  AUTH_USER[:AUTH_PASSWORD]

    =========================================================================
    """
    https = (
        server.get("REQUEST_SCHEME", "").lower() == "https"
        and server.get("HTTPS", "").lower() == "on"
    )

    request_uri = server.get("REQUEST_URI", "").partition("#")[0]
    path, _, uri_query = request_uri.partition("?")
    query = server.get("QUERY_STRING", "") or uri_query

    password = server.get("AUTH_PASSWORD", "")
    return (
        Uri()
        .with_scheme("https" if https else "http")
        .with_host(_server_host(server, headers))
        .with_port(_server_port(server))
        .with_path(path)
        .with_query(query.lstrip("?"))
        .with_fragment("")
        .with_user_info(server.get("AUTH_USER", ""), password or None)
    )


def _server_host(server: Mapping[str, str], headers: Mapping[str, Tuple[str, ...]]) -> str:
    host = (
        ", ".join(headers.get("Host", ()))
        or server.get("HTTP_HOST", "")
        or server.get("SERVER_NAME", "")
    )
    # Drop a ":port" suffix; the port comes from SERVER_PORT.
    if host.startswith("["):
        return host[: host.find("]") + 1]
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        return name
    return host


def _server_port(server: Mapping[str, str]) -> Optional[int]:
    port = server.get("SERVER_PORT", "").strip()
    if port.isdigit() and 1 <= int(port) <= 65535:
        return int(port)
    return None


def _protocol_version(server: Mapping[str, str], config: ExchangeConfig) -> str:
    version = server.get("SERVER_PROTOCOL", "").upper().replace("HTTP/", "")
    return version if version in PROTOCOL_VERSIONS else config.protocol_version


def parse_body(method: str, content_type: str, form: Mapping[str, Any], body: Stream) -> Any:
    """
    Decode the request body.

    POST requests with a form content type use the decoded form fields;
    JSON content types are decoded from the body stream. Empty or invalid
    JSON, and every other content type, give None.
    """
    content_type = content_type.lower()

    if method.upper() == "POST" and _FORM_PATTERN.search(content_type):
        return dict(form)

    if not _JSON_PATTERN.search(content_type):
        return None

    if body.is_seekable():
        body.rewind()
    raw = body.get_contents()
    if body.is_seekable():
        body.rewind()

    if not raw.strip():
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        logger.debug(f"Request body is not valid JSON: {exc}")
        return None


# =============================================================================
# HELPERS
# =============================================================================

def _lookup_input(name: Any, query: Mapping[str, Any], parsed_body: Any, default: Any) -> Any:
    if name in query:
        return query[name]
    if isinstance(parsed_body, Mapping) and name in parsed_body:
        return parsed_body[name]
    if default is not None:
        return default
    return ""


def _freeze(value: Any, name: str) -> Mapping[str, Any]:
    return MappingProxyType(dict(_require_mapping(value, name)))


def _require_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidArgumentError(f"{name} must be a mapping.")
    return value


def _attribute_name(name: Any) -> Any:
    if isinstance(name, bool) or not isinstance(name, (str, int)):
        raise InvalidArgumentError("Attribute name must be a string or integer.")
    return name
