from typing import Any, Dict, List

import structlog
from sqlalchemy.orm import Session

from .errors import Forbidden, InvalidInput
from .models import Member
from .sessions import SessionInfo

log = structlog.get_logger(__name__)

DEFAULT_ROSTER = (
    {"id": "BB-01", "name": "Deepak Singh Bisht", "phone": ""},
    {"id": "BB-02", "name": "Lokesh Singh Bisht", "phone": ""},
    {"id": "BB-03", "name": "Suraj Singh Bisht", "phone": ""},
    {"id": "BB-04", "name": "Karan Singh Bisht", "phone": ""},
    {"id": "BB-05", "name": "Himanshu Bisht", "phone": ""},
    {"id": "BB-06", "name": "Gaurav Bisht", "phone": ""},
    {"id": "BB-07", "name": "Rahul Bisht", "phone": ""},
    {"id": "BB-08", "name": "Saurav Bisht", "phone": ""},
    {"id": "BB-09", "name": "Pankaj Bisht", "phone": ""},
)


def list_members(db: Session) -> List[Dict[str, Any]]:
    members = db.query(Member).order_by(Member.pk).all()
    if not members:
        return [dict(m) for m in DEFAULT_ROSTER]
    return [m.to_dict() for m in members]


def _clean(members: Any) -> List[Dict[str, str]]:
    if not isinstance(members, list):
        raise InvalidInput("members must be a list")
    cleaned = []
    for m in members:
        if not isinstance(m, dict):
            raise InvalidInput("Each member must be an object")
        code = str(m.get("id") or "").strip()
        name = str(m.get("name") or "").strip()
        if not code or not name:
            raise InvalidInput("Each member needs an id and a name")
        cleaned.append({"code": code, "name": name, "phone": str(m.get("phone") or "").strip()})
    return cleaned


def replace_all(db: Session, acting: SessionInfo, members: Any) -> int:
    """Swap the whole roster for ``members`` in one transaction."""
    if acting is None or acting.role != "admin":
        raise Forbidden("Admin only")
    cleaned = _clean(members)

    try:
        db.query(Member).delete(synchronize_session=False)
        db.add_all([Member(**m) for m in cleaned])
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info("members_replaced", count=len(cleaned), by=acting.mobile)
    return len(cleaned)
