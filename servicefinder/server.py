"""Application assembly, request logging and the command that serves it."""

from __future__ import annotations

import argparse
import logging
import time
from datetime import timedelta
from typing import Optional, Sequence

from werkzeug.serving import run_simple
from werkzeug.utils import redirect
from werkzeug.wrappers import Request, Response

from . import posting_api, user_api
from .middleware import permissive_cors
from .openapi import swagger_json
from .postings import PostingRepository, PostingService
from .routing import Router, new_server
from .sessions import SessionManager
from .users import UserRepository, UserService

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = ":8080"
SESSION_TTL = timedelta(minutes=5)

_SWAGGER_PREFIX = "/swagger/"
_SWAGGER_INDEX = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Service Finder API</title></head>
<body>
<h1>Service Finder API</h1>
<p>The API description is available as <a href="doc.json">doc.json</a>.</p>
</body>
</html>
"""


def _healthz(request: Request) -> Response:
    return Response("ok", status=200, content_type="text/plain; charset=utf-8")


def _swagger(request: Request) -> Response:
    rest = request.path[len(_SWAGGER_PREFIX):]
    if rest == "":
        return redirect(_SWAGGER_PREFIX + "index.html", code=301)
    if rest == "index.html":
        return Response(_SWAGGER_INDEX, status=200, content_type="text/html; charset=utf-8")
    if rest == "doc.json":
        return Response(swagger_json(), status=200, content_type="application/json; charset=utf-8")
    return Response("404 page not found\n", status=404, content_type="text/plain; charset=utf-8")


def register_all(
    router: Router,
    sessions: SessionManager,
    user_service: UserService,
    posting_service: PostingService,
) -> None:
    """Register the health check, API description, user and posting routes."""
    router.handle("GET", "/healthz", _healthz)
    router.handle(None, _SWAGGER_PREFIX, _swagger)
    user_api.register(router, user_api.UserHandler(user_service, sessions))
    posting_api.register(router, posting_api.PostingHandler(posting_service), sessions)


def with_logging(app):
    """Wrap a WSGI app so each request's method, path and duration are logged."""

    def logging_app(environ, start_response):
        start = time.perf_counter()
        try:
            return app(environ, start_response)
        finally:
            elapsed = time.perf_counter() - start
            logger.info(
                "%s %s %.6fs",
                environ.get("REQUEST_METHOD", ""),
                environ.get("PATH_INFO", ""),
                elapsed,
            )

    return logging_app


def build_app(
    sessions: SessionManager,
    user_service: UserService,
    posting_service: PostingService,
):
    """Return the complete WSGI application."""
    router = new_server()
    register_all(router, sessions, user_service, posting_service)
    return permissive_cors(with_logging(router))


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def listen(address: str, app) -> None:
    """Serve ``app`` on ``address`` (``host:port``, host optional) until stopped."""
    host, port = _split_address(address)
    run_simple(host, port, app, threaded=False)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Start the API server."""
    parser = argparse.ArgumentParser(description="Service Finder API server.")
    parser.add_argument("--addr", default=DEFAULT_ADDRESS, help="listen address, host:port")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    sessions = SessionManager(SESSION_TTL)
    user_service = UserService(UserRepository())
    posting_service = PostingService(PostingRepository(), user_service)
    app = build_app(sessions, user_service, posting_service)

    logger.info("listening on %s", args.addr)
    listen(args.addr, app)