"""In-memory session store and session cookie helpers."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Union

COOKIE_NAME = "sid"


@dataclass(frozen=True)
class _Session:
    user_id: str
    expires_at: float


class SessionManager:
    """Issues random session ids that expire after a fixed time to live."""

    def __init__(
        self,
        ttl: Union[timedelta, float],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        self._clock = clock
        self._sessions: dict[str, _Session] = {}

    def new(self, user_id: str) -> str:
        """Start a session for ``user_id`` and return its id."""
        sid = secrets.token_hex(32)
        self._sessions[sid] = _Session(user_id, self._clock() + self._ttl)
        return sid

    def get(self, sid: str) -> Optional[str]:
        """Return the user id of a live session, or None."""
        session = self._sessions.get(sid)
        if session is None or self._clock() > session.expires_at:
            return None
        return session.user_id

    def delete(self, sid: str) -> None:
        """Forget a session; unknown ids are ignored."""
        self._sessions.pop(sid, None)

    def set_cookie(self, response, sid: str) -> None:
        """Attach the session cookie to a werkzeug response."""
        max_age = int(self._ttl)
        response.set_cookie(
            COOKIE_NAME,
            sid,
            max_age=max_age if max_age > 0 else None,
            path="/",
            httponly=True,
            samesite="Lax",
        )

    def clear_cookie(self, response) -> None:
        """Tell the client to drop the session cookie."""
        response.set_cookie(COOKIE_NAME, "", max_age=0, path="/", httponly=True)