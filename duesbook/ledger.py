"""Monthly dues and group expenses."""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import InvalidInput
from .models import DEFAULT_CATEGORY, DEFAULT_DUE_AMOUNT, STATUSES, Expense, Record

log = structlog.get_logger(__name__)


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_due_amount(value: Any) -> float:
    number = _to_number(value)
    if number is None or number <= 0:
        return DEFAULT_DUE_AMOUNT
    return number


def resolve_paid_date(status: str, paid_date: Any) -> str:
    """Done keeps the given paid date (or stamps today); Pending always clears it."""
    if status == "Done":
        return str(paid_date or "").strip() or today()
    return ""


def due_fields(amount: Any, status: Any, paid_date: Any = None) -> Dict[str, Any]:
    status = status or "Pending"
    if status not in STATUSES:
        raise InvalidInput("Invalid status")
    return {
        "amount": coerce_due_amount(amount),
        "status": status,
        "paid_date": resolve_paid_date(status, paid_date),
    }


def upsert_due(
    db: Session,
    name: Any,
    period: Any,
    amount: Any = None,
    status: Any = None,
    paid_date: Any = None,
) -> Record:
    name = str(name or "").strip()
    period = str(period or "").strip()
    if not name or not period:
        raise InvalidInput("Name and period required")
    fields = due_fields(amount, status, paid_date)

    record = db.query(Record).filter(Record.name == name, Record.period == period).first()
    if record is None:
        record = Record(name=name, period=period, **fields)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            # someone else inserted the same (name, period) first; update theirs
            db.rollback()
            record = db.query(Record).filter(Record.name == name, Record.period == period).one()
            _apply(record, fields)
            db.commit()
    else:
        _apply(record, fields)
        db.commit()
    db.refresh(record)
    log.info("due_saved", name=name, period=period, status=record.status, amount=record.amount)
    return record


def _apply(record: Record, fields: Dict[str, Any]) -> None:
    for key, value in fields.items():
        setattr(record, key, value)


def list_due(db: Session) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in db.query(Record).order_by(Record.id).all()]


def add_expense(
    db: Session,
    description: Any,
    amount: Any,
    date: Any,
    category: Any = None,
) -> Expense:
    description = str(description or "").strip()
    date = str(date or "").strip()
    number = _to_number(amount)
    if not description or not date or number is None:
        raise InvalidInput("All fields required")
    if number <= 0:
        raise InvalidInput("Amount must be positive")

    expense = Expense(
        description=description,
        amount=number,
        date=date,
        category=str(category or "").strip() or DEFAULT_CATEGORY,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    log.info("expense_added", id=expense.id, amount=expense.amount, category=expense.category)
    return expense


def remove_expense(db: Session, expense_id: str) -> bool:
    """Delete by id. A missing id is not an error; returns whether a row went away."""
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if expense is None:
        return False
    db.delete(expense)
    db.commit()
    log.info("expense_removed", id=expense_id)
    return True


def list_expenses(db: Session) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in db.query(Expense).order_by(Expense.created_at).all()]


def summary(db: Session) -> Dict[str, Any]:
    records = db.query(Record).all()
    expenses = db.query(Expense).all()
    collected = sum(r.amount for r in records if r.status == "Done")
    pending = sum(r.amount for r in records if r.status == "Pending")
    spent = sum(e.amount for e in expenses)
    return {
        "collected": round(collected, 2),
        "pending": round(pending, 2),
        "expenses": round(spent, 2),
        "balance": round(collected - spent, 2),
    }
