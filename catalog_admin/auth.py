"""
Session-based authentication for the admin user.

The signed session cookie only carries a random session id. The session
itself lives in `SessionStore` on the server, so logging out invalidates
every copy of the cookie.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from fastapi import HTTPException, Request, status

from catalog_admin.db import CatalogStore

SESSION_ID = "sid"


@dataclass
class SessionStore:
    """In-process session map keyed by session id."""

    max_age: int = 24 * 60 * 60
    sessions: dict = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def create(self, user_id: str, username: str) -> str:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self.sessions[session_id] = {
                "user_id": user_id,
                "username": username,
                "created_at": time.time(),
            }
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[dict]:
        if not session_id:
            return None
        with self._lock:
            data = self.sessions.get(session_id)
            if data and time.time() - data["created_at"] > self.max_age:
                del self.sessions[session_id]
                return None
            return data

    def destroy(self, session_id: Optional[str]) -> None:
        with self._lock:
            self.sessions.pop(session_id, None)


def authenticate_user(
    store: CatalogStore, username: Optional[str], password: Optional[str]
) -> Optional[dict]:
    """Return the user record whose username and plaintext password both match."""
    if not username or password is None:
        return None
    return store.find_user(username, password)


def _sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def _current_session(request: Request) -> Optional[dict]:
    return _sessions(request).get(request.session.get(SESSION_ID))


def start_session(request: Request, user: dict) -> None:
    sessions = _sessions(request)
    sessions.destroy(request.session.get(SESSION_ID))
    request.session[SESSION_ID] = sessions.create(user["id"], user["username"])


def end_session(request: Request) -> None:
    _sessions(request).destroy(request.session.get(SESSION_ID))
    request.session.clear()


def current_username(request: Request) -> Optional[str]:
    data = _current_session(request)
    return data["username"] if data else None


def is_authenticated(request: Request) -> bool:
    return _current_session(request) is not None


async def require_auth(request: Request) -> str:
    """Guard for mutating routes; runs before the handler touches storage."""
    data = _current_session(request)
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Please login.",
        )
    return data["username"]
