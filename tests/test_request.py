"""Tests for strata.http.request — immutable request and attribute bag."""

import io

import pytest

from strata.http.headers import Headers
from strata.http.request import Request


class TestRequest:
    def test_defaults(self) -> None:
        request = Request("GET", "/")
        assert request.attributes == {}
        assert request.body == b""
        assert request.http_version == "1.1"

    def test_frozen(self) -> None:
        request = Request("GET", "/")
        with pytest.raises(AttributeError):
            request.method = "POST"  # type: ignore[misc]

    def test_with_attribute(self) -> None:
        original = Request("GET", "/")
        updated = original.with_attribute("user", "ada")
        assert updated.get_attribute("user") == "ada"
        assert original.get_attribute("user") is None

    def test_attributes_read_only(self) -> None:
        request = Request("GET", "/").with_attribute("a", 1)
        with pytest.raises(TypeError):
            request.attributes["b"] = 2  # type: ignore[index]

    def test_with_attributes_merges(self) -> None:
        request = Request("GET", "/").with_attribute("a", 1).with_attributes({"b": 2, "a": 3})
        assert dict(request.attributes) == {"a": 3, "b": 2}

    def test_with_attributes_empty_returns_self(self) -> None:
        request = Request("GET", "/")
        assert request.with_attributes({}) is request

    def test_without_attribute(self) -> None:
        request = Request("GET", "/").with_attribute("a", 1).without_attribute("a")
        assert request.get_attribute("a", "gone") == "gone"

    def test_headers(self) -> None:
        request = Request("GET", "/", headers=Headers([("Accept", "text/html")]))
        assert request.has_header("accept")
        assert request.get_header("ACCEPT") == ["text/html"]
        updated = request.with_added_header("Accept", "application/json")
        assert updated.get_header_line("Accept") == "text/html, application/json"
        assert not request.without_header("Accept").has_header("Accept")
        assert request.with_header("Accept", "*/*").get_header("Accept") == ["*/*"]

    def test_with_method_and_path(self) -> None:
        request = Request("GET", "/a").with_method("POST").with_path("/b")
        assert (request.method, request.path) == ("POST", "/b")

    def test_query_and_url(self) -> None:
        request = Request("GET", "/search", query_string="q=a&page=2")
        assert request.query == {"q": "a", "page": "2"}
        assert request.url == "/search?q=a&page=2"
        assert Request("GET", "/").url == "/"


class TestFromWSGI:
    def test_basic_fields(self) -> None:
        environ = {
            "REQUEST_METHOD": "PUT",
            "PATH_INFO": "/items/1",
            "QUERY_STRING": "x=1",
            "SERVER_PROTOCOL": "HTTP/1.0",
            "CONTENT_TYPE": "text/plain",
            "CONTENT_LENGTH": "4",
            "HTTP_ACCEPT_LANGUAGE": "en",
            "wsgi.input": io.BytesIO(b"data"),
        }
        request = Request.from_wsgi(environ)
        assert request.method == "PUT"
        assert request.path == "/items/1"
        assert request.query_string == "x=1"
        assert request.http_version == "1.0"
        assert request.body == b"data"
        assert request.get_header_line("Content-Type") == "text/plain"
        assert request.get_header_line("Accept-Language") == "en"

    def test_utf8_path(self) -> None:
        raw = "/café".encode().decode("latin-1")
        request = Request.from_wsgi({"PATH_INFO": raw, "wsgi.input": io.BytesIO()})
        assert request.path == "/café"

    def test_empty_path_is_root(self) -> None:
        assert Request.from_wsgi({}).path == "/"
