import json

import pytest
from werkzeug.test import Client, EnvironBuilder
from werkzeug.wrappers import Request, Response

from servicefinder.middleware import (
    error_response,
    json_response,
    permissive_cors,
    user_id_from,
    with_auth,
)
from servicefinder.sessions import SessionManager


def _inner_app(calls, extra_headers=None):
    def app(environ, start_response):
        calls.append(environ["REQUEST_METHOD"])
        response = Response("hello", mimetype="text/plain")
        for name, value in (extra_headers or {}).items():
            response.headers[name] = value
        return response(environ, start_response)

    return app


def _request(cookie=None):
    headers = {"Cookie": cookie} if cookie is not None else {}
    return Request(EnvironBuilder(path="/x", headers=headers).get_environ())


def test_preflight_is_answered_without_calling_app():
    calls = []
    client = Client(permissive_cors(_inner_app(calls)))
    response = client.open("/anything", method="OPTIONS")
    assert response.status_code == 204
    assert calls == []
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, PATCH, DELETE, OPTIONS"
    assert response.headers["Access-Control-Max-Age"] == "86400"


def test_passthrough_adds_cors_headers():
    calls = []
    client = Client(permissive_cors(_inner_app(calls)))
    response = client.get("/anything")
    assert calls == ["GET"]
    assert response.get_data(as_text=True) == "hello"
    assert response.headers["Access-Control-Allow-Headers"] == "*"
    assert response.headers.getlist("Vary") == [
        "Access-Control-Request-Headers",
        "Access-Control-Request-Method",
        "Origin",
    ]


def test_requested_headers_are_echoed():
    client = Client(permissive_cors(_inner_app([])))
    response = client.get("/", headers={"Access-Control-Request-Headers": "X-Custom, Content-Type"})
    assert response.headers["Access-Control-Allow-Headers"] == "X-Custom, Content-Type"


def test_app_headers_override_cors_headers():
    client = Client(permissive_cors(_inner_app([], {"Vary": "Accept"})))
    response = client.get("/")
    assert response.headers.getlist("Vary") == ["Accept"]
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_json_response_round_trip():
    payload = {"b": [1, 2], "a": "texto"}
    response = json_response(201, payload)
    assert response.status_code == 201
    assert response.headers["Content-Type"] == "application/json; charset=utf-8"
    body = response.get_data(as_text=True)
    assert body.endswith("\n")
    assert json.loads(body) == payload


def test_json_response_escapes_html_characters():
    payload = {"html": "<b>"}
    body = json_response(200, payload).get_data(as_text=True)
    assert "<" not in body
    assert "\\u003cb\\u003e" in body
    assert json.loads(body) == payload


def test_error_response():
    response = error_response(404, "not found")
    assert response.status_code == 404
    assert json.loads(response.get_data(as_text=True)) == {"error": "not found"}


def test_user_id_from_plain_request_is_none():
    assert user_id_from(_request()) is None


@pytest.mark.parametrize("cookie", [None, "sid=unknown", "other=value"])
def test_with_auth_rejects_missing_or_unknown_session(cookie):
    seen = []
    handler = with_auth(SessionManager(60), lambda request: seen.append(request) or Response("x"))
    response = handler(_request(cookie))
    assert response.status_code == 401
    assert json.loads(response.get_data(as_text=True)) == {"error": "unauthorized"}
    assert seen == []


def test_with_auth_rejects_expired_session():
    now = [1000.0]
    sessions = SessionManager(10, clock=lambda: now[0])
    sid = sessions.new("user-1")
    now[0] += 11
    handler = with_auth(sessions, lambda request: Response("x"))
    assert handler(_request(f"sid={sid}")).status_code == 401


def test_with_auth_passes_user_id_to_handler():
    sessions = SessionManager(60)
    sid = sessions.new("user-7")
    handler = with_auth(sessions, lambda request: json_response(200, {"uid": user_id_from(request)}))
    response = handler(_request(f"sid={sid}"))
    assert response.status_code == 200
    assert json.loads(response.get_data(as_text=True)) == {"uid": "user-7"}