"""Tests for strata.app — the application surface end to end."""

import io

import pytest

from strata.app import ANY_METHODS, App
from strata.config import AppConfig
from strata.container import ServiceContainer
from strata.errors import MethodNotAllowed, RouteNotFound
from strata.http.request import Request
from strata.http.response import Response
from strata.resolver import CallableResolver
from strata.routing.router import Router


def _hello(request, response, args):
    return response.write(f"Hello {args['name']}")


def module_handler(request, response, args):
    return response.write("from module")


class Controller:
    def show(self, request, response, args):
        return response.write(f"show {args['id']}")


class Dynamic:
    def invoke_named(self, name, args):
        request, response, arguments = args
        return response.write(f"{name}:{arguments['id']}")


class TestSettings:
    def test_defaults_from_config(self) -> None:
        app = App()
        assert app.get_setting("http_version") == "1.1"
        assert app.get_setting("response_chunk_size") == 4096
        assert app.has_setting("display_error_details")

    def test_custom_config(self) -> None:
        app = App(AppConfig(http_version="2", display_error_details=True))
        assert app.get_setting("http_version") == "2"
        assert app.get_setting("display_error_details") is True

    def test_missing_setting(self) -> None:
        app = App()
        assert not app.has_setting("nope")
        assert app.get_setting("nope") is None
        assert app.get_setting("nope", "fallback") == "fallback"

    def test_add_setting(self) -> None:
        app = App()
        app.add_setting("foo", "bar")
        assert app.get_setting("foo") == "bar"

    def test_add_settings_merges(self) -> None:
        app = App()
        app.add_settings({"foo": "bar", "http_version": "1.0"})
        assert app.get_setting("foo") == "bar"
        assert app.get_setting("http_version") == "1.0"
        assert app.has_setting("response_chunk_size")

    def test_settings_is_a_copy(self) -> None:
        app = App()
        app.settings["foo"] = "bar"
        assert not app.has_setting("foo")


class TestCollaborators:
    def test_container_in_constructor(self) -> None:
        container = ServiceContainer()
        assert App(container=container).container is container

    def test_deferred_container(self) -> None:
        app = App()
        cell = app.deferred_container()
        assert cell() is None
        container = ServiceContainer()
        app.container = container
        assert cell() is container

    def test_deferred_router(self) -> None:
        app = App()
        cell = app.deferred_router()
        router = Router()
        app.router = router
        assert cell() is router

    def test_deferred_callable_resolver(self) -> None:
        app = App()
        cell = app.deferred_callable_resolver()
        resolver = CallableResolver()
        app.callable_resolver = resolver
        assert cell() is resolver
        assert app.router.callable_resolver is resolver

    def test_replaced_router_uses_app_resolver(self) -> None:
        container = ServiceContainer({"ctrl": Controller()})
        app = App(container=container)
        app.router = Router()
        app.get("/items/{id}", "ctrl:show")
        assert app.handle(Request("GET", "/items/3")).text == "show 3"


class TestRegistrationHelpers:
    @pytest.mark.parametrize(
        ("helper", "method"),
        [
            ("get", "GET"),
            ("post", "POST"),
            ("put", "PUT"),
            ("patch", "PATCH"),
            ("delete", "DELETE"),
            ("options", "OPTIONS"),
        ],
    )
    def test_single_method_helpers(self, helper: str, method: str) -> None:
        app = App()
        route = getattr(app, helper)("/x", _hello)
        assert route.methods == (method,)

    def test_any(self) -> None:
        app = App()
        assert app.any("/x", _hello).methods == ANY_METHODS

    def test_map(self) -> None:
        app = App()
        route = app.map(["GET", "POST"], "/x", _hello)
        assert route.methods == ("GET", "POST")
        assert route.identifier == "route0"

    def test_route_decorator(self) -> None:
        app = App()

        @app.route("/users/{id}", methods=["GET", "PUT"], name="user")
        def user(request, response, args):
            return response.write(args["id"])

        assert app.handle(Request("PUT", "/users/5")).text == "5"
        assert app.router.url_for("user", {"id": 5}) == "/users/5"
        assert user(None, Response(), {"id": "x"}).text == "x"

    def test_route_decorator_defaults_to_get(self) -> None:
        app = App()

        @app.route("/")
        def index(request, response, args):
            return "index"

        assert app.router.routes[0].methods == ("GET",)

    def test_redirect(self) -> None:
        app = App()
        app.redirect("/old", "/new")
        response = app.handle(Request("GET", "/old"))
        assert response.status == 302
        assert response.get_header_line("Location") == "/new"

    def test_redirect_custom_status(self) -> None:
        app = App()
        app.redirect("/old", "https://example.com/new", 301)
        response = app.handle(Request("GET", "/old"))
        assert response.status == 301
        assert response.get_header_line("Location") == "https://example.com/new"


class TestGroups:
    def test_group_prefix(self) -> None:
        app = App()
        app.group("/foo", lambda app: app.get("/bar", _hello))
        assert app.router.routes[0].pattern == "/foo/bar"

    def test_group_prefix_is_not_normalized(self) -> None:
        app = App()
        app.group("/", lambda app: app.get("//bar", lambda request, response, args: "ok"))
        assert app.router.routes[0].pattern == "///bar"
        assert app.handle(Request("GET", "///bar")).text == "ok"

    def test_nested_slash_groups(self) -> None:
        app = App()

        def inner(app: App) -> None:
            app.get("/bar", lambda request, response, args: "ok")

        app.group("/", lambda app: app.group("/", inner))
        assert app.router.routes[0].pattern == "///bar"

    def test_empty_group_prefix(self) -> None:
        app = App()
        app.group("", lambda app: app.get("bar", _hello))
        assert app.router.routes[0].pattern == "bar"

    def test_group_builder_receives_app(self) -> None:
        app = App()
        seen = []
        app.group("/x", seen.append)
        assert seen == [app]


class TestDispatch:
    def test_placeholder_arguments(self) -> None:
        app = App()
        app.get("/hello/{name}", _hello)
        assert app.handle(Request("GET", "/hello/world")).text == "Hello world"

    def test_non_ascii_placeholder_value(self) -> None:
        app = App()
        app.get("/foo/{name}", _hello)
        assert app.handle(Request("GET", "/foo/añó")).text == "Hello añó"

    def test_non_ascii_literal_route(self) -> None:
        app = App()
        app.get("/новости", lambda request, response, args: response.write("Hello"))
        response = app.handle(Request("GET", "/новости"))
        assert response.status == 200
        assert response.text == "Hello"

    def test_optional_segment_arguments(self) -> None:
        seen = []
        app = App()
        app.get("/foo[/{bar}]", lambda request, response, args: seen.append(dict(args)))
        app.handle(Request("GET", "/foo"))
        app.handle(Request("GET", "/foo/baz"))
        assert seen == [{}, {"bar": "baz"}]

    def test_default_arguments(self) -> None:
        seen = []
        app = App()
        route = app.get("/foo[/{bar}]", lambda request, response, args: seen.append(dict(args)))
        route.set_argument("bar", "default").set_argument("extra", "1")
        app.handle(Request("GET", "/foo"))
        app.handle(Request("GET", "/foo/given"))
        assert seen == [{"bar": "default", "extra": "1"}, {"bar": "given", "extra": "1"}]

    def test_set_arguments_replaces(self) -> None:
        seen = []
        app = App()
        route = app.get("/", lambda request, response, args: seen.append(dict(args)))
        route.set_argument("old", "1")
        route.set_arguments({"new": "2"})
        app.handle(Request("GET", "/"))
        assert seen == [{"new": "2"}]
        assert route.get_argument("old") is None
        assert route.get_argument("new") == "2"

    def test_route_attributes(self) -> None:
        seen = {}
        app = App()

        def handler(request, response, args):
            seen["route"] = request.get_attribute("route")
            seen["arguments"] = request.get_attribute("route_arguments")
            seen["name"] = request.get_attribute("name")

        route = app.get("/hello/{name}", handler)
        app.handle(Request("GET", "/hello/ada"))
        assert seen == {"route": route, "arguments": {"name": "ada"}, "name": "ada"}

    def test_route_attribute_visible_to_route_middleware(self) -> None:
        seen = []
        app = App()
        route = app.get("/", _hello)
        route.set_argument("name", "x")
        def spy(request, next):
            seen.append(request.get_attribute("route"))
            return next(request)

        route.add(spy)
        app.handle(Request("GET", "/"))
        assert seen == [route]

    def test_handler_returning_none_uses_response(self) -> None:
        app = App()
        app.get("/", lambda request, response, args: response.body.write("in place") and None)
        assert app.handle(Request("GET", "/")).text == "in place"

    def test_handler_returning_text(self) -> None:
        app = App()
        app.get("/s", lambda request, response, args: "text")
        app.get("/b", lambda request, response, args: b"bytes")
        assert app.handle(Request("GET", "/s")).text == "text"
        assert app.handle(Request("GET", "/b")).body_bytes == b"bytes"

    def test_handler_returning_other_type(self) -> None:
        app = App()
        app.get("/", lambda request, response, args: 42)
        with pytest.raises(TypeError, match="int"):
            app.handle(Request("GET", "/"))

    def test_custom_response_factory(self) -> None:
        app = App(response_factory=lambda: Response().with_header("X-Default", "1"))
        app.get("/", lambda request, response, args: None)
        assert app.handle(Request("GET", "/")).get_header_line("X-Default") == "1"

    def test_container_target(self) -> None:
        app = App(container=ServiceContainer({"ctrl": Controller()}))
        app.get("/items/{id}", "ctrl:show")
        assert app.handle(Request("GET", "/items/9")).text == "show 9"

    def test_named_invocation_target(self) -> None:
        app = App(container=ServiceContainer({"dyn": Dynamic()}))
        app.get("/items/{id}", "dyn:archive")
        assert app.handle(Request("GET", "/items/4")).text == "archive:4"

    def test_dotted_function_target(self) -> None:
        app = App()
        app.get("/mod", f"{__name__}.module_handler")
        assert app.handle(Request("GET", "/mod")).text == "from module"

    def test_container_swapped_after_registration(self) -> None:
        app = App()
        app.get("/items/{id}", "ctrl:show")
        app.container = ServiceContainer({"ctrl": Controller()})
        assert app.handle(Request("GET", "/items/1")).text == "show 1"

    def test_not_found_propagates(self) -> None:
        app = App()
        app.get("/", _hello)
        with pytest.raises(RouteNotFound):
            app.handle(Request("GET", "/missing"))

    def test_method_not_allowed_propagates(self) -> None:
        app = App()
        app.get("/", _hello)
        app.post("/", _hello)
        with pytest.raises(MethodNotAllowed) as exc_info:
            app.handle(Request("DELETE", "/"))
        assert exc_info.value.allowed == ("GET", "POST")

    def test_route_run_skips_matching(self) -> None:
        app = App()
        route = app.get("/hello/{name}", _hello).set_argument("name", "default")
        assert route.run(Request("GET", "/anything")).text == "Hello default"
        assert route.run(Request("GET", "/"), {"name": "given"}).text == "Hello given"


class TestHead:
    def test_body_stripped_handler_called_once(self) -> None:
        calls = []
        app = App()

        def handler(request, response, args):
            calls.append(request.method)
            return response.with_header("X-Kind", "page").write("body")

        app.get("/", handler)
        response = app.handle(Request("HEAD", "/"))
        assert response.status == 200
        assert response.body_bytes == b""
        assert response.get_header_line("X-Kind") == "page"
        assert calls == ["HEAD"]

    def test_get_keeps_body(self) -> None:
        app = App()
        app.get("/", lambda request, response, args: "body")
        assert app.handle(Request("GET", "/")).text == "body"


class TestRun:
    def test_run_writes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        app = App()
        app.get("/hello/{name}", _hello)
        response = app.run(Request("GET", "/hello/ada"))
        assert response.status == 200
        assert capsys.readouterr().out == "Hello ada"

    def test_run_to_binary_stream(self) -> None:
        app = App(AppConfig(response_chunk_size=2))
        app.get("/", lambda request, response, args: "héllo")
        stream = io.BytesIO()
        app.run(Request("GET", "/"), stream=stream)
        assert stream.getvalue() == "héllo".encode()

    def test_run_head_writes_nothing(self) -> None:
        app = App()
        app.get("/", lambda request, response, args: "body")
        stream = io.StringIO()
        app.run(Request("HEAD", "/"), stream=stream)
        assert stream.getvalue() == ""


class TestWSGI:
    def _environ(self, method: str = "GET", path: str = "/", body: bytes = b"") -> dict:
        return {
            "REQUEST_METHOD": method,
            "PATH_INFO": path,
            "QUERY_STRING": "q=1",
            "SERVER_PROTOCOL": "HTTP/1.1",
            "CONTENT_LENGTH": str(len(body)) if body else "",
            "HTTP_X_CLIENT": "tests",
            "wsgi.input": io.BytesIO(body),
        }

    def test_wsgi_call(self) -> None:
        captured = []
        app = App()
        app.get("/hello/{name}", _hello)

        def start_response(status, headers):
            captured.append((status, headers))

        body = app(self._environ(path="/hello/ada"), start_response)

        assert b"".join(body) == b"Hello ada"
        status, headers = captured[0]
        assert status == "200 OK"
        assert ("Content-Length", "9") in headers

    def test_wsgi_request_fields(self) -> None:
        seen = {}
        app = App()

        def echo(request, response, args):
            seen["body"] = request.body
            seen["query"] = request.query
            seen["client"] = request.get_header_line("X-Client")
            return response.with_status(201)

        app.post("/echo", echo)
        captured = []
        environ = self._environ("POST", "/echo", b"hello")
        app(environ, lambda status, headers: captured.append(status))
        assert captured == ["201 Created"]
        assert seen == {"body": b"hello", "query": {"q": "1"}, "client": "tests"}

    def test_wsgi_no_content_length_when_disabled(self) -> None:
        captured = []
        app = App(AppConfig(add_content_length_header=False))
        app.get("/", lambda request, response, args: "x")
        app(self._environ(), lambda status, headers: captured.append(headers))
        assert all(name != "Content-Length" for name, _ in captured[0])

    def test_wsgi_204_has_empty_body(self) -> None:
        captured = []
        app = App()
        app.get("/", lambda request, response, args: response.with_status(204).write("stray"))
        body = app(self._environ(), lambda status, headers: captured.append((status, headers)))
        assert body == []
        assert captured[0][0] == "204 No Content"
        assert ("Content-Length", "0") in captured[0][1]
