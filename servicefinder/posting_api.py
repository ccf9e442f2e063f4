"""HTTP handlers and routes for postings."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from werkzeug.wrappers import Request, Response

from .middleware import error_response, json_response, user_id_from, with_auth
from .postings import (
    ForbiddenError,
    Posting,
    PostingError,
    PostingNotFoundError,
    PostingService,
)
from .routing import Router
from .sessions import SessionManager

API_PREFIX = "/api/v1"
_POSTING_PREFIX = API_PREFIX + "/postings/"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECODER = json.JSONDecoder()


def _read_json(request: Request) -> Any:
    text = request.get_data(as_text=True).lstrip(" \t\r\n")
    try:
        value, _ = _DECODER.raw_decode(text)
    except ValueError:
        raise ValueError("invalid json") from None
    return value


def _match_field(key: str, names) -> Optional[str]:
    if key in names:
        return key
    folded = key.casefold()
    return next((name for name in names if name.casefold() == folded), None)


def _decode_object(data: Any, fields: dict[str, type]) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid json")
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = _match_field(key, fields)
        if name is None or value is None:
            continue
        if fields[name] is int:
            if not isinstance(value, int) or isinstance(value, bool) or not _INT64_MIN <= value <= _INT64_MAX:
                raise ValueError(f"invalid value for {name}")
        elif not isinstance(value, str):
            raise ValueError(f"invalid value for {name}")
        values[name] = value
    return values


@dataclass
class CreateRequest:
    title: str = ""
    description: str = ""
    price: int = 0
    category: str = ""
    city: str = ""
    district: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "CreateRequest":
        """Build a request from decoded JSON; raise ValueError on bad types."""
        fields = {
            "title": str,
            "description": str,
            "price": int,
            "category": str,
            "city": str,
            "district": str,
        }
        return cls(**_decode_object(data, fields))


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def posting_to_json(posting: Posting) -> dict[str, Any]:
    """Return the wire form of a posting."""
    return {
        "ID": posting.id,
        "ProviderID": posting.provider_id,
        "ProviderName": posting.provider_name,
        "Title": posting.title,
        "Description": posting.description,
        "Price": posting.price,
        "Category": posting.category,
        "City": posting.city,
        "District": posting.district,
        "Archived": posting.archived,
        "CreatedAt": _format_time(posting.created_at),
        "UpdatedAt": _format_time(posting.updated_at),
    }


def status_for(error: Exception) -> int:
    """Map a posting error to an HTTP status."""
    if isinstance(error, ForbiddenError):
        return 403
    if isinstance(error, PostingNotFoundError):
        return 404
    return 400


def _strip_prefix(path: str) -> str:
    return path[len(_POSTING_PREFIX):] if path.startswith(_POSTING_PREFIX) else path


class PostingHandler:
    """Request handlers for the postings API."""

    def __init__(self, service: PostingService) -> None:
        self._service = service

    def create(self, request: Request) -> Response:
        provider_id = user_id_from(request)
        if provider_id is None:
            return error_response(401, "unauthorized")
        try:
            body = CreateRequest.from_json(_read_json(request))
        except ValueError:
            return error_response(400, "invalid json")
        try:
            posting = self._service.create(
                provider_id,
                body.title,
                body.description,
                body.price,
                body.category,
                body.city,
                body.district,
            )
        except PostingError as err:
            return error_response(400, str(err))
        return json_response(201, posting_to_json(posting))

    def update(self, request: Request) -> Response:
        provider_id = user_id_from(request)
        if provider_id is None:
            return error_response(401, "unauthorized")
        posting_id = _strip_prefix(request.path)
        try:
            patch = _read_json(request)
        except ValueError:
            return error_response(400, "invalid json")
        if patch is not None and not isinstance(patch, dict):
            return error_response(400, "invalid json")
        try:
            posting = self._service.update(provider_id, posting_id, patch)
        except PostingError as err:
            return error_response(status_for(err), str(err))
        return json_response(200, posting_to_json(posting))

    def archive(self, request: Request) -> Response:
        provider_id = user_id_from(request)
        if provider_id is None:
            return error_response(401, "unauthorized")
        posting_id = _strip_prefix(request.path)
        if posting_id.endswith("/archive"):
            posting_id = posting_id[: -len("/archive")]
        try:
            self._service.archive(provider_id, posting_id)
        except PostingError as err:
            return error_response(status_for(err), str(err))
        return json_response(200, {"status": "ok"})

    def list_mine(self, request: Request) -> Response:
        provider_id = user_id_from(request)
        if provider_id is None:
            return error_response(401, "unauthorized")
        return json_response(200, [posting_to_json(p) for p in self._service.list_mine(provider_id)])

    def get_public(self, request: Request) -> Response:
        try:
            posting = self._service.get_public(_strip_prefix(request.path))
        except PostingError:
            return error_response(404, "not found")
        return json_response(200, posting_to_json(posting))

    def list_public(self, request: Request) -> Response:
        return json_response(200, [posting_to_json(p) for p in self._service.list_public()])


def _not_found() -> Response:
    response = Response("404 page not found\n", status=404, content_type="text/plain; charset=utf-8")
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def register(router: Router, handler: PostingHandler, sessions: SessionManager) -> None:
    """Add the postings routes to ``router``."""
    router.handle("GET", API_PREFIX + "/postings", handler.list_public)
    router.handle("GET", _POSTING_PREFIX, handler.get_public)

    router.handle("POST", API_PREFIX + "/postings", with_auth(sessions, handler.create))
    router.handle("GET", API_PREFIX + "/postings/mine", with_auth(sessions, handler.list_mine))
    router.handle("PATCH", _POSTING_PREFIX, with_auth(sessions, handler.update))

    def archive_or_not_found(request: Request) -> Response:
        if request.path.endswith("/archive"):
            return handler.archive(request)
        return _not_found()

    router.handle("POST", _POSTING_PREFIX, with_auth(sessions, archive_or_not_found))