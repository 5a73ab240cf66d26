from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request

from .sessions import SessionInfo, SessionStore

log = structlog.get_logger(__name__)

ACCESS_DENIED = "Access denied"
NOT_AUTHENTICATED = "Not authenticated"


def authorize(
    store: SessionStore,
    claimed_mobile: Optional[str],
    token: Optional[str],
    required_role: Optional[str] = "admin",
) -> Optional[SessionInfo]:
    """Return the session when the caller is who they claim (and holds the role), else None."""
    info = store.lookup(token)
    if info is None:
        return None
    if not claimed_mobile or info.mobile != claimed_mobile:
        return None
    if required_role is not None and info.role != required_role:
        return None
    return info


def get_sessions(request: Request) -> SessionStore:
    store = getattr(request.app.state, "sessions", None)
    if store is None:
        raise HTTPException(status_code=500, detail="session_store_missing")
    return store


def require_session(
    x_mobile: Optional[str] = Header(default=None),
    x_token: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_sessions),
) -> SessionInfo:
    info = authorize(store, x_mobile, x_token, required_role=None)
    if info is None:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)
    return info


def require_admin(
    x_mobile: Optional[str] = Header(default=None),
    x_token: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_sessions),
) -> SessionInfo:
    info = authorize(store, x_mobile, x_token, required_role="admin")
    if info is None:
        log.info("admin_denied", mobile=x_mobile)
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    return info
