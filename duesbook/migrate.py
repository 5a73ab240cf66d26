"""
One-time import of the old flat-file data (users.json, data.json).

Each legacy entry is reconciled against what is already stored and written back
keyed by its natural key, so running the import again changes nothing.
"""

import json
import os
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from .hashing import CredentialHasher
from .ledger import coerce_due_amount, resolve_paid_date
from .models import ROLES, STATUSES, Record, User
from .users import normalize_mobile

log = structlog.get_logger(__name__)


def reconcile_user(
    existing: Optional[Dict[str, Any]],
    legacy: Dict[str, Any],
    hasher: CredentialHasher,
) -> Dict[str, Any]:
    existing = existing or {}
    secret = str(legacy.get("password") or "")

    current = existing.get("password")
    if current and not hasher.needs_update(current) and hasher.looks_hashed(secret):
        # stored credential is already on the current scheme
        password = current
    elif hasher.looks_hashed(secret):
        password = secret
    elif current and hasher.verify(secret, current):
        password = current
    else:
        password = hasher.hash(secret)

    role = legacy.get("role")
    if role not in ROLES:
        role = existing.get("role") or "viewer"

    return {
        "mobile": normalize_mobile(legacy.get("mobile")),
        "password": password,
        "name": str(legacy.get("name") or existing.get("name") or "").strip(),
        "role": role,
    }


def reconcile_record(existing: Optional[Dict[str, Any]], legacy: Dict[str, Any]) -> Dict[str, Any]:
    existing = existing or {}
    status = legacy.get("status")
    if status not in STATUSES:
        status = existing.get("status") or "Pending"
    paid_date = legacy.get("paidDate") or existing.get("paid_date")

    return {
        "name": str(legacy.get("name") or "").strip(),
        "period": str(legacy.get("period") or legacy.get("date") or "").strip(),
        "amount": coerce_due_amount(legacy.get("amount")),
        "status": status,
        "paid_date": resolve_paid_date(status, paid_date),
    }


def _load(path: str) -> List[Dict[str, Any]]:
    if not path or not os.path.exists(path):
        return []
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array")
    return [entry for entry in data if isinstance(entry, dict)]


def _user_state(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"password": user.password, "name": user.name, "role": user.role}


def _record_state(record: Optional[Record]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {"amount": record.amount, "status": record.status, "paid_date": record.paid_date}


def migrate_users(db: Session, hasher: CredentialHasher, entries: List[Dict[str, Any]]) -> int:
    count = 0
    for entry in entries:
        mobile = normalize_mobile(entry.get("mobile"))
        if not mobile or not entry.get("password"):
            log.warning("legacy_user_skipped", mobile=mobile or None)
            continue
        user = db.query(User).filter(User.mobile == mobile).first()
        fields = reconcile_user(_user_state(user), entry, hasher)
        if not fields["name"]:
            fields["name"] = mobile
        if user is None:
            db.add(User(**fields))
        else:
            for key, value in fields.items():
                setattr(user, key, value)
        db.commit()
        count += 1
    return count


def migrate_records(db: Session, entries: List[Dict[str, Any]]) -> int:
    count = 0
    for entry in entries:
        name = str(entry.get("name") or "").strip()
        period = str(entry.get("period") or entry.get("date") or "").strip()
        if not name or not period:
            log.warning("legacy_record_skipped", name=name or None, period=period or None)
            continue
        record = db.query(Record).filter(Record.name == name, Record.period == period).first()
        fields = reconcile_record(_record_state(record), entry)
        if record is None:
            db.add(Record(**fields))
        else:
            for key, value in fields.items():
                setattr(record, key, value)
        db.commit()
        count += 1
    return count


def migrate_legacy(
    db: Session,
    hasher: CredentialHasher,
    users_path: str,
    records_path: str,
) -> Tuple[int, int]:
    users = records = 0
    try:
        legacy_users = _load(users_path)
        if legacy_users:
            users = migrate_users(db, hasher, legacy_users)
            log.info("legacy_users_migrated", count=users, path=users_path)
    except (OSError, ValueError) as e:
        db.rollback()
        log.warning("legacy_users_failed", path=users_path, error=str(e))
    try:
        legacy_records = _load(records_path)
        if legacy_records:
            records = migrate_records(db, legacy_records)
            log.info("legacy_records_migrated", count=records, path=records_path)
    except (OSError, ValueError) as e:
        db.rollback()
        log.warning("legacy_records_failed", path=records_path, error=str(e))
    return users, records
