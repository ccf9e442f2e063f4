"""CORS and session authentication wrappers, plus JSON response helpers."""

from __future__ import annotations

import functools
import json
from typing import Callable, Iterable, Optional

from werkzeug.wrappers import Request, Response

from .sessions import COOKIE_NAME, SessionManager

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

_USER_ID_KEY = "servicefinder.user_id"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

Handler = Callable[[Request], Response]


def _cors_headers(environ) -> list[tuple[str, str]]:
    requested = environ.get("HTTP_ACCESS_CONTROL_REQUEST_HEADERS", "")
    return [
        ("Access-Control-Allow-Origin", "*"),
        ("Access-Control-Allow-Methods", "GET, POST, PUT, PATCH, DELETE, OPTIONS"),
        ("Access-Control-Allow-Headers", requested or "*"),
        ("Access-Control-Max-Age", "86400"),
        ("Vary", "Access-Control-Request-Headers"),
        ("Vary", "Access-Control-Request-Method"),
        ("Vary", "Origin"),
    ]


def permissive_cors(app):
    """Wrap a WSGI app so every origin may call it, without credentials.

    Preflight ``OPTIONS`` requests are answered with 204 and never reach ``app``.
    Headers the wrapped app sets itself take precedence over the CORS ones.
    """

    def cors_app(environ, start_response) -> Iterable[bytes]:
        cors = _cors_headers(environ)
        if environ.get("REQUEST_METHOD") == "OPTIONS":
            start_response("204 No Content", cors)
            return []

        def start_with_cors(status, headers, exc_info=None):
            overridden = {name.lower() for name, _ in headers}
            merged = [h for h in cors if h[0].lower() not in overridden] + list(headers)
            if exc_info is None:
                return start_response(status, merged)
            return start_response(status, merged, exc_info)

        return app(environ, start_with_cors)

    return cors_app


def json_response(status: int, payload) -> Response:
    """Encode ``payload`` as compact JSON followed by a newline."""
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in _HTML_ESCAPES.items():
        body = body.replace(char, escaped)
    return Response(body + "\n", status=status, content_type=JSON_CONTENT_TYPE)


def error_response(status: int, message: str) -> Response:
    """Return a JSON body of the form ``{"error": message}``."""
    return json_response(status, {"error": message})


def user_id_from(request: Request) -> Optional[str]:
    """Return the user id that ``with_auth`` attached to ``request``, if any."""
    value = request.environ.get(_USER_ID_KEY)
    return value if isinstance(value, str) else None


def with_auth(sessions: SessionManager, handler: Handler) -> Handler:
    """Only let requests with a live session cookie through to ``handler``."""

    @functools.wraps(handler)
    def authenticated(request: Request) -> Response:
        sid = request.cookies.get(COOKIE_NAME)
        if sid is None:
            return error_response(401, "unauthorized")
        user_id = sessions.get(sid)
        if user_id is None:
            return error_response(401, "unauthorized")
        request.environ[_USER_ID_KEY] = user_id
        return handler(request)

    return authenticated