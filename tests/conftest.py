"""
pytest configuration and fixtures.
"""

import io
from typing import Any, Dict

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpexchange import ExchangeConfig, Environment, Stream


@pytest.fixture
def server_params() -> Dict[str, str]:
    """Server variables of a typical GET request."""
    return {
        "REQUEST_METHOD": "GET",
        "REQUEST_URI": "/api/users?page=1",
        "QUERY_STRING": "page=1",
        "REQUEST_SCHEME": "http",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "HTTP_HOST": "localhost:8080",
        "HTTP_ACCEPT": "application/json",
        "HTTP_USER_AGENT": "pytest",
    }


@pytest.fixture
def environment(server_params: Dict[str, str]) -> Environment:
    """Environment snapshot for the typical GET request."""
    return Environment(server=server_params, query={"page": "1"})


@pytest.fixture
def wsgi_environ() -> Dict[str, Any]:
    """WSGI environ of a JSON POST request."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return {
        "REQUEST_METHOD": "POST",
        "SCRIPT_NAME": "",
        "PATH_INFO": "/api/users",
        "QUERY_STRING": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "HTTP_HOST": "localhost:8080",
        "CONTENT_TYPE": "application/json",
        "CONTENT_LENGTH": str(len(body)),
        "wsgi.url_scheme": "http",
        "wsgi.input": io.BytesIO(body),
    }


@pytest.fixture
def stream() -> Stream:
    """In-memory stream with some content."""
    return Stream.from_bytes(b"Hello, World!")


@pytest.fixture
def config() -> ExchangeConfig:
    """Default test configuration."""
    return ExchangeConfig()
