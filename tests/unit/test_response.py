"""
Unit tests for Response and its emission.
"""

import io

import pytest

from httpexchange.config import ExchangeConfig
from httpexchange.http.errors import InvalidArgumentError
from httpexchange.http.response import Response
from httpexchange.http.status_codes import HTTPStatus, reason_phrase
from httpexchange.http.stream import Stream


class TestResponseStatus:
    """Tests for status code and reason phrase."""

    def test_defaults(self):
        """Test the default response."""
        response = Response()

        assert response.status_code == 200
        assert response.reason_phrase == "OK"
        assert response.status_line == "HTTP/1.1 200 OK"

    def test_with_status_standard_phrase(self):
        """Test that the standard phrase is filled in."""
        response = Response().with_status(404)

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.reason_phrase == "Not Found"

    def test_with_status_custom_phrase(self):
        """Test a custom reason phrase."""
        response = Response().with_status(418, "Short And Stout")
        assert response.status_line == "HTTP/1.1 418 Short And Stout"

    def test_numeric_string(self):
        """Test that a numeric string is accepted."""
        assert Response().with_status("201").status_code == 201

    def test_unregistered_code(self):
        """Test a valid but unregistered code has no phrase."""
        response = Response().with_status(299)

        assert response.status_code == 299
        assert response.reason_phrase == ""
        assert response.status_line == "HTTP/1.1 299"

    @pytest.mark.parametrize("code", [99, 600, "abc", 200.0, None, True])
    def test_invalid_codes(self, code):
        """Test rejected status codes."""
        with pytest.raises(InvalidArgumentError):
            Response().with_status(code)

    def test_strict_status_codes(self):
        """Test restricting codes to the registered table."""
        response = Response(config=ExchangeConfig(strict_status_codes=True))

        assert response.with_status(404).status_code == 404
        with pytest.raises(InvalidArgumentError):
            response.with_status(299)

    def test_with_status_returns_copy(self):
        """Test that the original keeps its status."""
        original = Response()
        original.with_status(500)
        assert original.status_code == 200

    def test_reason_phrase_lookup(self):
        """Test the phrase table."""
        assert reason_phrase(503) == "Service Unavailable"
        assert reason_phrase(299) == ""
        assert HTTPStatus.CREATED.phrase == "Created"
        assert HTTPStatus.NOT_FOUND.is_client_error


class TestResponseEmission:
    """Tests for serialization and send()."""

    def test_to_bytes(self):
        """Test the serialized layout."""
        response = (
            Response(body=Stream.from_bytes(b"hello"))
            .with_header("Content-Type", "text/plain")
            .with_added_header("Vary", ["Accept", "Accept-Encoding"])
        )

        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Vary: Accept, Accept-Encoding\r\n"
            b"\r\n"
            b"hello"
        )

    def test_cookie_header_not_sent(self):
        """Test that Cookie headers are never emitted."""
        response = Response().with_header("Cookie", "a=1").with_header("X-A", "1")
        data = response.to_bytes()

        assert b"Cookie" not in data
        assert b"X-A: 1\r\n" in data

    def test_send_to_sink(self):
        """Test writing to a binary sink."""
        sink = io.BytesIO()
        Response(body=Stream.from_bytes(b"body")).with_status(201).send(sink)

        assert sink.getvalue() == b"HTTP/1.1 201 Created\r\n\r\nbody"

    @pytest.mark.parametrize("value", ["\u65e5\u672c", "ok\r\nSet-Cookie: a=1"])
    def test_unserializable_header_rejected_on_set(self, value):
        """Test that a header that cannot be written fails when set, not on send."""
        response = Response()

        with pytest.raises(InvalidArgumentError):
            response.with_header("X-Name", value)
        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_latin1_header_sent(self):
        """Test that latin-1 header values are written byte for byte."""
        sink = io.BytesIO()
        Response().with_header("X-Name", "caf\u00e9").send(sink)

        assert b"X-Name: caf\xe9\r\n" in sink.getvalue()

    def test_send_twice(self):
        """Test that sending does not change the response."""
        response = Response(body=Stream.from_bytes(b"x"))
        first, second = io.BytesIO(), io.BytesIO()

        response.send(first)
        response.send(second)

        assert first.getvalue() == second.getvalue()

    def test_large_body_is_chunked(self):
        """Test that the whole body is emitted."""
        payload = b"a" * 20000
        chunks = list(Response(body=Stream.from_bytes(payload)).iter_bytes(8192))

        assert b"".join(chunks[1:]) == payload
        assert len(chunks) == 4

    def test_protocol_version_in_status_line(self):
        """Test the status line follows the protocol version."""
        response = Response().with_protocol_version("1.0")
        assert response.to_bytes().startswith(b"HTTP/1.0 200 OK\r\n")

    def test_send_defaults_to_stdout(self, monkeypatch):
        """Test writing to the process's stdout."""
        stdout = io.TextIOWrapper(io.BytesIO())
        monkeypatch.setattr("sys.stdout", stdout)

        Response(body=Stream.from_bytes(b"out")).send()

        assert stdout.buffer.getvalue() == b"HTTP/1.1 200 OK\r\n\r\nout"
