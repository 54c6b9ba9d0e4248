"""Tests for the request pipeline — match, authorize, validate, invoke."""

from dataclasses import dataclass

import pytest

from sprout.app import App
from sprout.config import AppConfig
from sprout.errors import ConfigurationError, Forbidden, NotFound
from sprout.http.request import Request
from sprout.http.response import Response
from sprout.middleware.sessions import SessionConfig, SessionMiddleware
from sprout.security import SecurityEvent, set_security_event_sink
from sprout.session import Session, start
from sprout.testing import TestClient, error_of
from sprout.validation import Schema, number, string


class Calls:
    def __init__(self) -> None:
        self.count = 0
        self.kwargs: list[dict] = []

    def record(self, **kwargs) -> None:
        self.count += 1
        self.kwargs.append(kwargs)


@dataclass(frozen=True, slots=True)
class Bin:
    lat: float
    lng: float
    types: frozenset[str]


def _app(**config) -> tuple[App, Calls]:
    calls = Calls()
    app = App(AppConfig(**config))
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="test-secret")))

    @app.route("/login", methods=["POST"])
    def login(session: Session, username: str):
        start(session, username)
        return {"msg": "Logged in!"}

    @app.route("/bin", auth_required=True)
    async def locate_bin(session: Session, lat: float, lng: float, type: str):
        calls.record(lat=lat, lng=lng, type=type)
        return {"lat": lat, "lng": lng, "type": type}

    @app.route("/bin", methods=["POST"], auth_required=True, status=201)
    async def add_bin(lat: float, lng: float, type: list[str]):
        calls.record(type=type)
        return Bin(lat, lng, frozenset(type))

    @app.route("/friend/requests/:to", methods=["POST", "DELETE"])
    def friend_request(request: Request, to: str):
        return {"verb": request.method, "to": to}

    @app.route("/friend/accept/:from", methods=["PUT"])
    def accept(from_: str):
        return {"from": from_}

    @app.route("/users/:username", schema=Schema({"username": string(min_length=1)}))
    def get_user(username: str):
        return {"username": username}

    @app.route("/count")
    def count(n: int):
        calls.record(n=n)
        return {"n": n, "type": type(n).__name__}

    @app.route("/merge/:key", methods=["POST"])
    def merge(key: str, source: str | None = None):
        return {"key": key, "source": source}

    @app.route("/forbidden")
    def forbidden():
        raise Forbidden("Not yours")

    @app.route("/boom")
    def boom():
        raise RuntimeError("kaboom")

    @app.route("/raw")
    def raw():
        return Response(body="plain", content_type="text/plain").with_header("X-Raw", "1")

    @app.route("/tuple")
    def with_status():
        return {"made": True}, 202

    return app, calls


async def _login(client: TestClient) -> None:
    response = await client.post("/login", json={"username": "alice"})
    assert response.status == 200


class TestAuthorization:
    async def test_anonymous_rejected_before_handler(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            response = await client.get("/bin", query={"lat": 1, "lng": 2, "type": "glass"})
            assert response.status == 401
            assert error_of(response)["error"] == "Unauthenticated"
            assert calls.count == 0

    async def test_auth_checked_before_input(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            response = await client.post(
                "/bin", body=b"{not json", headers={"content-type": "application/json"}
            )
            assert response.status == 401
            assert calls.count == 0

    async def test_rejection_emits_audit_event(self) -> None:
        events: list[SecurityEvent] = []
        set_security_event_sink(events.append)
        try:
            app, _ = _app()
            async with TestClient(app) as client:
                await client.get("/bin")
        finally:
            set_security_event_sink(None)
        assert [(e.name, e.path) for e in events] == [("auth.rejected", "/bin")]

    async def test_logged_in_reaches_handler(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            await _login(client)
            response = await client.get("/bin", query={"lat": "1.5", "lng": "2", "type": "glass"})
            assert response.status == 200
            assert response.json_body() == {"lat": 1.5, "lng": 2.0, "type": "glass"}
            assert calls.count == 1


class TestValidation:
    async def test_missing_field_reports_details(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            await _login(client)
            response = await client.get("/bin", query={"lat": "1"})
            assert response.status == 400
            body = error_of(response)
            assert body["error"] == "ValidationFailed"
            assert body["details"] == [
                {"field": "lng", "reason": "Required"},
                {"field": "type", "reason": "Required"},
            ]
            assert calls.count == 0

    async def test_valid_input_invokes_exactly_once(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            await _login(client)
            response = await client.post("/bin", json={"lat": 1, "lng": 2, "type": ["glass"]})
            assert response.status == 201
            assert calls.count == 1

    async def test_dataclass_result_serialized(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            await _login(client)
            response = await client.post(
                "/bin", json={"lat": 1, "lng": 2, "type": ["paper", "glass"]}
            )
            assert response.json_body() == {"lat": 1, "lng": 2, "types": ["glass", "paper"]}

    async def test_malformed_json(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post(
                "/login", body=b"{nope", headers={"content-type": "application/json"}
            )
            assert response.status == 400
            assert error_of(response)["details"] == [{"field": "", "reason": "Malformed JSON body"}]

    async def test_non_object_json(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post("/login", json=["alice"])
            assert response.status == 400
            assert error_of(response)["details"] == [
                {"field": "", "reason": "Expected a JSON object"}
            ]

    @pytest.mark.parametrize("token", [b"NaN", b"Infinity", b"-Infinity"])
    async def test_non_finite_constants_are_malformed(self, token: bytes) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            await _login(client)
            response = await client.post(
                "/bin",
                body=b'{"lat": ' + token + b', "lng": 2, "type": ["glass"]}',
                headers={"content-type": "application/json"},
            )
            assert response.status == 400
            assert error_of(response)["details"] == [{"field": "", "reason": "Malformed JSON body"}]
            assert calls.count == 0

    async def test_stray_body_ignored_without_inputs(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.request(
                "GET", "/tuple", body=b"{nope", headers={"content-type": "application/json"}
            )
            assert response.status == 202
            assert response.json_body() == {"made": True}

    async def test_stray_body_rejected_when_strict(self) -> None:
        app, _ = _app(strict_schemas=True)
        async with TestClient(app) as client:
            response = await client.request(
                "GET", "/tuple", body=b"{nope", headers={"content-type": "application/json"}
            )
            assert response.status == 400

    async def test_form_body(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post(
                "/login",
                body=b"username=alice",
                headers={"content-type": "application/x-www-form-urlencoded"},
            )
            assert response.status == 200

    async def test_body_too_large(self) -> None:
        app, _ = _app(max_content_length=16)
        async with TestClient(app) as client:
            response = await client.post("/login", json={"username": "a" * 64})
            assert response.status == 400
            assert error_of(response)["details"][0]["reason"] == "Request body too large"

    async def test_int_param_receives_int(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/count", query={"n": "3"})
            assert response.json_body() == {"n": 3, "type": "int"}

    async def test_int_param_rejects_fraction(self) -> None:
        app, calls = _app()
        async with TestClient(app) as client:
            response = await client.get("/count", query={"n": "3.5"})
            assert response.status == 400
            assert calls.count == 0

    async def test_declared_schema_used(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/users/alice")
            assert response.json_body() == {"username": "alice"}

    async def test_strict_mode_rejects_unknown(self) -> None:
        app, _ = _app(strict_schemas=True)
        async with TestClient(app) as client:
            response = await client.post("/login", json={"username": "a", "admin": True})
            assert response.status == 400
            assert error_of(response)["details"] == [{"field": "admin", "reason": "Unknown field"}]


class TestBinding:
    async def test_path_param_bound_by_name(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post("/friend/requests/bob")
            assert response.json_body() == {"verb": "POST", "to": "bob"}
            response = await client.delete("/friend/requests/bob")
            assert response.json_body() == {"verb": "DELETE", "to": "bob"}

    async def test_keyword_path_param(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.put("/friend/accept/carol")
            assert response.json_body() == {"from": "carol"}

    async def test_path_beats_query_beats_body(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post(
                "/merge/path?key=query&source=query",
                json={"key": "body", "source": "body"},
            )
            assert response.json_body() == {"key": "path", "source": "query"}

    async def test_body_used_when_alone(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.post("/merge/k", json={"source": "body"})
            assert response.json_body() == {"key": "k", "source": "body"}

    async def test_provider_injection(self) -> None:
        class Greeter:
            def greet(self, name: str) -> str:
                return f"hello {name}"

        app = App()
        greeter = Greeter()
        app.provide(Greeter, lambda: greeter)

        @app.route("/greet/:name")
        def greet(name: str, service: Greeter):
            return {"msg": service.greet(name)}

        async with TestClient(app) as client:
            response = await client.get("/greet/ann")
            assert response.json_body() == {"msg": "hello ann"}


class TestErrors:
    async def test_not_found_envelope(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404
            assert error_of(response)["error"] == "NotFound"

    async def test_method_not_allowed(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.patch("/bin")
            assert response.status == 405
            assert response.header("allow") == "GET, POST"
            assert error_of(response)["error"] == "MethodNotAllowed"

    async def test_handler_http_error(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/forbidden")
            assert response.status == 403
            assert error_of(response) == {"error": "Forbidden", "message": "Not yours"}

    async def test_unexpected_error_hides_detail(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert error_of(response) == {
                "error": "Unexpected",
                "message": "Internal Server Error",
            }

    async def test_unexpected_error_in_debug(self) -> None:
        app, _ = _app(debug=True)
        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert error_of(response)["message"] == "RuntimeError: kaboom"

    async def test_unexpected_error_is_logged(self, caplog) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            with caplog.at_level("ERROR", logger="sprout.server"):
                await client.get("/boom")
        assert any(record.exc_info for record in caplog.records)

    async def test_registered_error_handler(self) -> None:
        app, _ = _app()

        @app.error(NotFound)
        def missing(request: Request):
            return {"missing": request.path}

        async with TestClient(app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404
            assert response.json_body() == {"missing": "/nowhere"}


class TestResponses:
    async def test_response_passes_through(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/raw")
            assert response.text == "plain"
            assert response.content_type == "text/plain"
            assert response.header("x-raw") == "1"

    async def test_tuple_overrides_status(self) -> None:
        app, _ = _app()
        async with TestClient(app) as client:
            response = await client.get("/tuple")
            assert response.status == 202
            assert response.json_body() == {"made": True}


class TestAppSetup:
    def test_undeclared_required_param_rejected(self) -> None:
        app = App()

        @app.route("/users/:username", schema=Schema({"username": string()}))
        def get_user(username: str, lat: float):
            return {}

        with pytest.raises(ConfigurationError, match="'lat'"):
            app.router  # noqa: B018

    def test_duplicate_route_rejected_at_compile(self) -> None:
        app = App()
        app.add_route("GET", "/a/:x", lambda x: x)
        app.add_route("GET", "/a/:y", lambda y: y)
        with pytest.raises(ConfigurationError, match="conflicts"):
            app.router  # noqa: B018

    def test_cannot_register_after_compile(self) -> None:
        app, _ = _app()
        assert app.router.routes
        with pytest.raises(RuntimeError, match="already serving"):
            app.add_route("GET", "/late", lambda: None)

    def test_router_exposes_metadata(self) -> None:
        app, _ = _app()
        entry = app.router.find("POST", "/bin")
        assert entry is not None
        assert entry.route.auth_required
        assert entry.route.status == 201
        assert "lat" in entry.route.schema
        assert "session" not in app.router.find("GET", "/bin").route.schema

    def test_declared_schema_kept(self) -> None:
        app, _ = _app()
        route = app.router.find("GET", "/users/x").route
        assert list(route.schema) == ["username"]

    async def test_lifespan_hooks_run(self) -> None:
        app = App()
        seen: list[str] = []

        @app.on_startup
        async def up():
            seen.append("up")

        @app.on_shutdown
        def down():
            seen.append("down")

        async with TestClient(app):
            assert seen == ["up"]
        assert seen == ["up", "down"]

    def test_schema_with_number(self) -> None:
        app = App()

        @app.route("/n", schema=Schema({"n": number()}))
        def n_only(n: float):
            return {"n": n}

        assert app.router.find("GET", "/n") is not None


class TestRequestContext:
    async def test_current_request_visible_to_handler(self) -> None:
        from sprout import get_request

        app = App()

        @app.route("/where")
        def where():
            return {"path": get_request().path}

        async with TestClient(app) as client:
            assert (await client.get("/where")).json_body() == {"path": "/where"}

    def test_outside_request(self) -> None:
        from sprout import get_request

        with pytest.raises(LookupError):
            get_request()

    def test_top_level_exports(self) -> None:
        import sprout

        assert sprout.App is App
        assert sprout.Session is Session
        with pytest.raises(AttributeError):
            sprout.Nope  # noqa: B018
