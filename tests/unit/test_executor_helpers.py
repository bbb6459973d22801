"""Tests for the executor's URL, method and header helpers."""

from __future__ import annotations

import pytest

from callforge._internal.errors import ConfigurationError
from callforge.engine.executor import HttpResponse, build_url, parse_headers, parse_method


class TestBuildUrl:
    """Tests for build_url()."""

    @pytest.mark.parametrize(
        ("base", "endpoint", "expected"),
        [
            ("http://api.test", "/users", "http://api.test/users"),
            ("http://api.test/", "/users", "http://api.test/users"),
            ("http://api.test/", "users", "http://api.test/users"),
            ("http://api.test", "users", "http://api.test/users"),
            ("http://api.test/v1", "users?q=1", "http://api.test/v1/users?q=1"),
        ],
    )
    def test_joins_with_one_slash(self, base: str, endpoint: str, expected: str) -> None:
        assert build_url(base, endpoint) == expected

    @pytest.mark.parametrize("endpoint", ["http://other.test/x", "https://other.test/x"])
    def test_absolute_endpoint_ignores_base(self, endpoint: str) -> None:
        assert build_url("http://api.test", endpoint) == endpoint
        assert build_url(None, endpoint) == endpoint

    def test_relative_without_base_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="no base URL"):
            build_url(None, "/users")


class TestParseMethod:
    """Tests for parse_method()."""

    @pytest.mark.parametrize("method", ["get", "Post", "PUT", "patch", "delete", "head", "options"])
    def test_supported_case_insensitive(self, method: str) -> None:
        assert parse_method(method) == method.upper()

    def test_unsupported_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported HTTP method: TRACE"):
            parse_method("trace")


class TestParseHeaders:
    """Tests for parse_headers()."""

    def test_parses_and_trims(self) -> None:
        headers = parse_headers(["Accept:  application/json ", "X-Id:42"])
        assert headers["accept"] == "application/json"
        assert headers["X-Id"] == "42"

    def test_value_may_contain_colon(self) -> None:
        assert parse_headers(["X-Time: 12:30"])["X-Time"] == "12:30"

    def test_later_header_replaces_earlier(self) -> None:
        headers = parse_headers(["Accept: a", "accept: b"])
        assert headers.getall("Accept") == ["b"]

    def test_missing_colon_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="expected 'Key: Value'"):
            parse_headers(["Accept application/json"])

    def test_invalid_name_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid header name"):
            parse_headers(["Bad Name: x"])

    def test_newline_in_value_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid header value"):
            parse_headers(["X-Evil: a\r\nInjected: b"])


def test_http_response_ok() -> None:
    assert HttpResponse("GET", "http://x", 204, "", 0.0).ok
    assert not HttpResponse("GET", "http://x", 302, "", 0.0).ok
    assert not HttpResponse("GET", "http://x", 500, "", 0.0).ok
