"""
In-memory session store for development and tests.

Why: Keep sessions opaque to the client. The cookie carries only a random
session id; the user context (id, uid, display name, admin flag) stays
server-side. For multi-instance deployments, replace with a DB-backed store.

Security: Cookies carry only an opaque session id. Session data stays server-side.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    uid: str
    name: str
    is_administrator: bool = False
    expires_at: Optional[int] = None


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        user_id: str,
        uid: str,
        name: str,
        is_administrator: bool = False,
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            user_id=user_id,
            uid=uid,
            name=name,
            is_administrator=is_administrator,
            expires_at=_now() + ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)
