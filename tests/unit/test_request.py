"""
Unit tests for Request.
"""

import pytest

from httpexchange.config import ExchangeConfig
from httpexchange.http.errors import InvalidArgumentError
from httpexchange.http.request import Request
from httpexchange.http.uri import Uri


class TestRequestTarget:
    """Tests for the request target."""

    def test_derived_from_uri(self):
        """Test path and query from the URI."""
        request = Request(uri="http://example.com/api/users?page=1")
        assert request.request_target == "/api/users?page=1"

    def test_defaults_to_slash(self):
        """Test the target of a URI without path."""
        assert Request(uri="http://example.com").request_target == "/"
        assert Request().request_target == "/"

    def test_explicit_target(self):
        """Test an explicit target overrides the URI."""
        request = Request(uri="http://example.com/a").with_request_target("*")
        assert request.request_target == "*"

    @pytest.mark.parametrize("target", ["/a b", "/a\tb", "/a\nb"])
    def test_whitespace_rejected(self, target):
        """Test that targets with whitespace are rejected."""
        with pytest.raises(InvalidArgumentError):
            Request().with_request_target(target)

    def test_non_string_rejected(self):
        """Test that non-string targets are rejected."""
        with pytest.raises(InvalidArgumentError):
            Request().with_request_target(None)


class TestRequestMethod:
    """Tests for with_method."""

    def test_method_stored_as_given(self):
        """Test that the method keeps its case."""
        request = Request().with_method("patch")
        assert request.method == "patch"

    @pytest.mark.parametrize("method", ["GET", "HEAD", "POST", "PUT", "PATCH",
                                        "DELETE", "OPTIONS", "TRACE", "CONNECT"])
    def test_allowed_methods(self, method):
        """Test the default allowlist."""
        assert Request().with_method(method).method == method

    def test_unknown_method_rejected(self):
        """Test that methods outside the allowlist are rejected."""
        with pytest.raises(InvalidArgumentError):
            Request().with_method("BREW")

    def test_non_string_rejected(self):
        """Test that non-string methods are rejected."""
        with pytest.raises(InvalidArgumentError):
            Request().with_method(None)

    def test_custom_allowlist(self):
        """Test a restricted allowlist from config."""
        config = ExchangeConfig(allowed_methods=frozenset({"GET"}))
        request = Request(config=config)

        assert request.with_method("get").method == "get"
        with pytest.raises(InvalidArgumentError):
            request.with_method("POST")

    def test_with_method_keeps_config(self):
        """Test that derived copies validate with the same config."""
        config = ExchangeConfig(allowed_methods=frozenset({"GET", "PUT"}))
        request = Request(config=config).with_header("X-A", "1")
        assert request.with_method("PUT").config is config


class TestRequestUri:
    """Tests for with_uri and the Host header."""

    def test_string_uri_is_parsed(self):
        """Test that a string URI is turned into a Uri."""
        request = Request(uri="http://example.com/x")
        assert isinstance(request.uri, Uri)
        assert request.uri.host == "example.com"

    def test_with_uri_sets_host(self):
        """Test that the Host header follows the new URI."""
        request = Request().with_uri(Uri("http://example.com:8080/a"))
        assert request.get_header_line("Host") == "example.com:8080"

    def test_with_uri_replaces_host(self):
        """Test that an existing Host header is replaced."""
        request = Request(headers={"Host": "old.example"})
        updated = request.with_uri(Uri("https://new.example/"))

        assert updated.get_header("Host") == ["new.example"]
        assert request.get_header("Host") == ["old.example"]

    def test_preserve_host(self):
        """Test keeping the current Host header."""
        request = Request(headers={"Host": "old.example"})
        updated = request.with_uri(Uri("http://new.example/"), preserve_host=True)

        assert updated.get_header_line("Host") == "old.example"
        assert updated.uri.host == "new.example"

    def test_preserve_host_without_host_header(self):
        """Test that preserve_host still sets a missing Host header."""
        request = Request().with_uri(Uri("http://new.example/"), preserve_host=True)
        assert request.get_header_line("Host") == "new.example"

    def test_uri_without_host_keeps_header(self):
        """Test a relative URI leaves Host alone."""
        request = Request(headers={"Host": "example.com"}).with_uri(Uri("/path"))
        assert request.get_header_line("Host") == "example.com"

    def test_invalid_uri_rejected(self):
        """Test that only Uri instances are accepted by with_uri."""
        with pytest.raises(InvalidArgumentError):
            Request().with_uri("http://example.com/")
