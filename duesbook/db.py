from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_config


def _connect_args(url: str, sslmode: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgres") and sslmode:
        return {"sslmode": sslmode}
    return {}


cfg = get_config()
engine = create_engine(cfg.DATABASE_URL, connect_args=_connect_args(cfg.DATABASE_URL, cfg.DB_SSLMODE))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db() -> None:
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
