"""
In-memory login sessions.

One ``SessionStore`` is built per app (see ``main.lifespan``) and handed to
request handlers through ``app.state``. Expiry is checked when a token is
looked up; ``sweep`` only reclaims memory for tokens nobody asks about again.
"""

import hashlib
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

DEFAULT_TTL_SECONDS = 8 * 60 * 60


@dataclass(frozen=True)
class SessionInfo:
    token: str
    mobile: str
    role: str
    name: str
    created_at: float


class SessionStore:
    def __init__(
        self,
        secret: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, SessionInfo] = {}
        self._lock = threading.Lock()

    def _new_token(self, mobile: str) -> str:
        seed = f"{mobile}{time.time_ns()}{secrets.token_hex(16)}{self._secret}"
        return hashlib.sha256(seed.encode("utf-8")).hexdigest()

    def _expired(self, info: SessionInfo, now: float) -> bool:
        return now - info.created_at >= self._ttl

    def create(self, mobile: str, role: str, name: str) -> str:
        with self._lock:
            token = self._new_token(mobile)
            while token in self._sessions:
                token = self._new_token(mobile)
            self._sessions[token] = SessionInfo(
                token=token, mobile=mobile, role=role, name=name, created_at=self._clock()
            )
        return token

    def lookup(self, token: Optional[str]) -> Optional[SessionInfo]:
        if not token:
            return None
        with self._lock:
            info = self._sessions.get(token)
            if info is None:
                return None
            if self._expired(info, self._clock()):
                del self._sessions[token]
                return None
            return info

    def destroy(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [t for t, info in self._sessions.items() if self._expired(info, now)]
            for t in stale:
                del self._sessions[t]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
