import re
import threading
from typing import Any, Dict, List

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import AuthFailed, DuplicateIdentity, Forbidden, InvalidInput
from .hashing import CredentialHasher
from .models import ROLES, User
from .sessions import SessionInfo

log = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid mobile or password"
_MOBILE = re.compile(r"^\d{10}$")

# Serializes the "count accounts, then insert" step so two signups in this
# process cannot both become the first admin.
_signup_lock = threading.Lock()


def normalize_mobile(mobile: Any) -> str:
    return str(mobile or "").strip()


def register(db: Session, hasher: CredentialHasher, mobile: Any, password: Any, name: Any) -> str:
    mobile = normalize_mobile(mobile)
    password = password or ""
    name = str(name or "").strip()
    if not mobile or not password or not name:
        raise InvalidInput("All fields required")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password min {MIN_PASSWORD_LENGTH} chars")
    if not _MOBILE.match(mobile):
        raise InvalidInput("Mobile must be 10 digits")

    with _signup_lock:
        if db.query(User).filter(User.mobile == mobile).first():
            raise DuplicateIdentity("Mobile already registered!")
        role = "admin" if db.query(User).count() == 0 else "viewer"
        db.add(User(mobile=mobile, password=hasher.hash(password), name=name, role=role))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateIdentity("Mobile already registered!")

    log.info("user_registered", mobile=mobile, role=role)
    return role


def authenticate(db: Session, hasher: CredentialHasher, mobile: Any, password: Any) -> User:
    mobile = normalize_mobile(mobile)
    if not mobile or not password or not isinstance(password, str):
        raise AuthFailed(INVALID_CREDENTIALS)
    user = db.query(User).filter(User.mobile == mobile).first()
    if user is None or not hasher.verify(password, user.password):
        raise AuthFailed(INVALID_CREDENTIALS)

    if hasher.needs_update(user.password):
        user.password = hasher.hash(password)
        db.commit()
        db.refresh(user)
        log.info("credential_upgraded", mobile=mobile, scheme=hasher.name)
    return user


def change_role(db: Session, acting: SessionInfo, target_mobile: Any, new_role: Any) -> None:
    if acting is None or acting.role != "admin":
        raise Forbidden("Admin only")
    if new_role not in ROLES:
        raise InvalidInput("Invalid role")

    target_mobile = normalize_mobile(target_mobile)
    user = db.query(User).filter(User.mobile == target_mobile).first()
    if user is None:
        log.warning("role_change_unknown_user", target=target_mobile, by=acting.mobile)
        return
    user.role = new_role
    db.commit()
    log.info("role_changed", target=target_mobile, role=new_role, by=acting.mobile)


def list_users(db: Session) -> List[Dict[str, Any]]:
    return [u.public() for u in db.query(User).order_by(User.id).all()]
