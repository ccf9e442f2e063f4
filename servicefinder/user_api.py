"""HTTP handlers and routes for users, sessions and provider profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from werkzeug.wrappers import Request, Response

from .middleware import error_response, json_response
from .routing import Router
from .sessions import COOKIE_NAME, SessionManager
from .users import (
    EmailTakenError,
    ProviderProfile,
    UnauthorizedError,
    UserError,
    UserNotFoundError,
    UserService,
    ValidationError,
)

API_PREFIX = "/api/v1"
_DECODER = json.JSONDecoder()


def _read_json(request: Request) -> Any:
    text = request.get_data(as_text=True).lstrip(" \t\r\n")
    try:
        value, _ = _DECODER.raw_decode(text)
    except ValueError:
        raise ValueError("invalid json") from None
    return value


def _decode_strings(data: Any, names: tuple[str, ...]) -> dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid json")
    values: dict[str, str] = {}
    for key, value in data.items():
        name = key if key in names else next((n for n in names if n.casefold() == key.casefold()), None)
        if name is None or value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"invalid value for {name}")
        values[name] = value
    return values


@dataclass
class RegisterRequest:
    name: str = ""
    email: str = ""
    password: str = ""
    role: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "RegisterRequest":
        """Build a request from decoded JSON; raise ValueError on bad types."""
        return cls(**_decode_strings(data, ("name", "email", "password", "role")))


@dataclass
class LoginRequest:
    email: str = ""
    password: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "LoginRequest":
        """Build a request from decoded JSON; raise ValueError on bad types."""
        return cls(**_decode_strings(data, ("email", "password")))


@dataclass
class ProviderProfileRequest:
    bio: str = ""
    phone: str = ""
    expertise: str = ""
    city: str = ""
    district: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "ProviderProfileRequest":
        """Build a request from decoded JSON; raise ValueError on bad types."""
        return cls(**_decode_strings(data, ("bio", "phone", "expertise", "city", "district")))


def _profile_to_json(profile: Optional[ProviderProfile]) -> Optional[dict[str, str]]:
    if profile is None:
        return None
    return {
        "Bio": profile.bio,
        "Phone": profile.phone,
        "Expertise": profile.expertise,
        "City": profile.city,
        "District": profile.district,
    }


def _map_error(err: Exception) -> Response:
    if isinstance(err, (EmailTakenError, ValidationError)):
        return error_response(400, str(err))
    if isinstance(err, UnauthorizedError):
        return error_response(401, str(err))
    if isinstance(err, UserNotFoundError):
        return error_response(404, str(err))
    return error_response(500, "internal error")


class UserHandler:
    """Request handlers for accounts and sessions."""

    def __init__(self, service: UserService, sessions: SessionManager) -> None:
        self._service = service
        self._sessions = sessions

    def _session_user(self, request: Request) -> Optional[str]:
        sid = request.cookies.get(COOKIE_NAME)
        return None if sid is None else self._sessions.get(sid)

    def register(self, request: Request) -> Response:
        try:
            body = RegisterRequest.from_json(_read_json(request))
        except ValueError:
            return error_response(400, "invalid json")
        try:
            user = self._service.register(body.name, body.email, body.password, body.role)
        except UserError as err:
            return _map_error(err)
        return json_response(
            201,
            {"email": user.email, "id": user.id, "name": user.name, "role": user.role.value},
        )

    def login(self, request: Request) -> Response:
        try:
            body = LoginRequest.from_json(_read_json(request))
        except ValueError:
            return error_response(400, "invalid json")
        try:
            user = self._service.authenticate(body.email, body.password)
        except UserError:
            return error_response(401, "invalid email or password")
        sid = self._sessions.new(user.id)
        response = json_response(200, {"name": user.name, "role": user.role.value, "userId": user.id})
        self._sessions.set_cookie(response, sid)
        return response

    def logout(self, request: Request) -> Response:
        sid = request.cookies.get(COOKIE_NAME)
        if sid is not None:
            self._sessions.delete(sid)
        response = Response(status=204)
        del response.headers["Content-Type"]
        self._sessions.clear_cookie(response)
        return response

    def me(self, request: Request) -> Response:
        user_id = self._session_user(request)
        if user_id is None:
            return error_response(401, "unauthorized")
        try:
            user = self._service.by_id(user_id)
        except UserError as err:
            return _map_error(err)
        payload: dict[str, Any] = {"email": user.email, "id": user.id, "name": user.name}
        if user.provider is not None:
            payload["provider"] = _profile_to_json(user.provider)
        payload["role"] = user.role.value
        return json_response(200, payload)

    def update_provider_profile(self, request: Request) -> Response:
        user_id = self._session_user(request)
        if user_id is None:
            return error_response(401, "unauthorized")
        try:
            body = ProviderProfileRequest.from_json(_read_json(request))
        except ValueError:
            return error_response(400, "invalid json")
        profile = ProviderProfile(
            bio=body.bio,
            phone=body.phone,
            expertise=body.expertise,
            city=body.city,
            district=body.district,
        )
        try:
            user = self._service.update_provider_profile(user_id, profile)
        except UserError as err:
            return _map_error(err)
        return json_response(200, {"provider": _profile_to_json(user.provider), "status": "ok"})


def register(router: Router, handler: UserHandler) -> None:
    """Add the user routes to ``router``."""
    router.handle("POST", API_PREFIX + "/users", handler.register)
    router.handle("POST", API_PREFIX + "/login", handler.login)
    router.handle("POST", API_PREFIX + "/logout", handler.logout)
    router.handle("GET", API_PREFIX + "/me", handler.me)
    router.handle("PATCH", API_PREFIX + "/providers/profile", handler.update_provider_profile)