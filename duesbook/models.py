import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, UniqueConstraint

from .db import Base

ROLES = ("admin", "viewer")
STATUSES = ("Pending", "Done")
DEFAULT_DUE_AMOUNT = 500.0
DEFAULT_CATEGORY = "Other"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    mobile = Column(String(16), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default="viewer")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def public(self) -> Dict[str, Any]:
        return {"name": self.name, "mobile": self.mobile, "role": self.role}


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("name", "period", name="uq_records_name_period"),)
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    period = Column(String, nullable=False)
    amount = Column(Float, nullable=False, default=DEFAULT_DUE_AMOUNT)
    status = Column(String(16), nullable=False, default="Pending")
    paid_date = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "period": self.period,
            "amount": self.amount,
            "status": self.status,
            "paidDate": self.paid_date,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Expense(Base):
    __tablename__ = "expenses"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(String, nullable=False)
    category = Column(String, nullable=False, default=DEFAULT_CATEGORY)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
            "category": self.category,
            "createdAt": _iso(self.created_at),
        }


class Member(Base):
    __tablename__ = "members"
    pk = Column(Integer, primary_key=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, default="")

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.code, "name": self.name, "phone": self.phone}


class Setting(Base):
    __tablename__ = "settings"
    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(JSON)
