"""A small method-aware request router usable as a WSGI application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from werkzeug.utils import redirect
from werkzeug.wrappers import Request, Response

Handler = Callable[[Request], Response]


@dataclass(frozen=True)
class _Route:
    method: Optional[str]
    path: str
    handler: Handler

    @property
    def subtree(self) -> bool:
        return self.path.endswith("/")

    def matches_path(self, path: str) -> bool:
        if self.subtree:
            return path.startswith(self.path)
        return path == self.path

    def accepts(self, method: str) -> bool:
        if self.method is None or self.method == method:
            return True
        return self.method == "GET" and method == "HEAD"

    def specificity(self) -> tuple[bool, int, bool]:
        return (not self.subtree, len(self.path), self.method is not None)


class Router:
    """Routes requests by method and path.

    A path ending in ``/`` matches every path below it; any other path
    matches exactly. When several routes match, the most specific wins.
    """

    def __init__(self) -> None:
        self._routes: list[_Route] = []

    def handle(self, method: Optional[str], pattern: str, handler: Handler) -> None:
        """Register ``handler`` for ``method`` (None for any) and ``pattern``."""
        if not pattern.startswith("/"):
            raise ValueError(f"pattern must start with '/': {pattern!r}")
        method = method.upper() if method else None
        if any(r.method == method and r.path == pattern for r in self._routes):
            raise ValueError(f"pattern already registered: {method or ''} {pattern}".strip())
        self._routes.append(_Route(method, pattern, handler))

    def dispatch(self, request: Request) -> Response:
        """Run the handler that matches ``request`` and return its response."""
        path = request.path or "/"
        method = request.method.upper()

        target = self._redirect_target(path, method)
        if target is not None:
            query = request.query_string.decode("latin-1")
            return redirect(f"{target}?{query}" if query else target, code=301)

        matching = [r for r in self._routes if r.matches_path(path)]
        allowed = [r for r in matching if r.accepts(method)]
        if allowed:
            best = max(allowed, key=_Route.specificity)
            return best.handler(request)
        if matching:
            methods = {r.method for r in matching if r.method}
            if "GET" in methods:
                methods.add("HEAD")
            response = Response("Method Not Allowed\n", status=405, mimetype="text/plain")
            response.headers["Allow"] = ", ".join(sorted(methods))
            return response
        return Response("404 page not found\n", status=404, mimetype="text/plain")

    def _redirect_target(self, path: str, method: str) -> Optional[str]:
        if path.endswith("/"):
            return None
        if any(not r.subtree and r.path == path and r.accepts(method) for r in self._routes):
            return None
        slashed = path + "/"
        if any(r.subtree and r.path == slashed and r.accepts(method) for r in self._routes):
            return slashed
        return None

    def __call__(self, environ, start_response):
        response = self.dispatch(Request(environ))
        return response(environ, start_response)


def new_server() -> Router:
    """Return an empty router."""
    return Router()