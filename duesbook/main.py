import asyncio
import contextlib
import os
from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, ledger, members, users
from .auth import get_sessions, require_admin, require_session
from .config import get_config
from .db import SessionLocal, get_db, init_db
from .errors import DuesbookError
from .hashing import CredentialHasher, get_hasher
from .logs import configure_logging
from .migrate import migrate_legacy
from .sessions import SessionInfo, SessionStore

# ---------------- CONFIG ----------------
APP_TITLE = "Bisht Bros Ledger"
cfg = get_config()
configure_logging(cfg.LOG_LEVEL, cfg.LOG_JSON)
log = structlog.get_logger(__name__)


async def _sweep_sessions(store: SessionStore, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = store.sweep()
        if removed:
            log.info("sessions_swept", removed=removed, active=len(store))


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    hasher = get_hasher(cfg.PASSWORD_SCHEME)
    app.state.hasher = hasher
    app.state.sessions = SessionStore(cfg.SESSION_SECRET, ttl_seconds=cfg.session_ttl_seconds)

    db = SessionLocal()
    try:
        migrate_legacy(db, hasher, cfg.LEGACY_USERS_PATH, cfg.LEGACY_RECORDS_PATH)
    finally:
        db.close()

    sweeper = asyncio.create_task(_sweep_sessions(app.state.sessions, cfg.SESSION_SWEEP_SECONDS))
    log.info("server_started", version=__version__, scheme=hasher.name)
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(title=APP_TITLE, version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(cfg.CORS_ORIGINS),
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------- ERRORS ----------------
@app.exception_handler(DuesbookError)
async def duesbook_error(request: Request, exc: DuesbookError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ---------------- HELPERS ----------------
def get_password_hasher(request: Request) -> CredentialHasher:
    return request.app.state.hasher


# -------------------- AUTH --------------------
@app.post("/api/signup")
def signup(
    payload: Dict[str, Any],
    db: Session = Depends(get_db),
    hasher: CredentialHasher = Depends(get_password_hasher),
):
    role = users.register(db, hasher, payload.get("mobile"), payload.get("password"), payload.get("name"))
    return {"success": True, "role": role}


@app.post("/api/login")
def login(
    payload: Dict[str, Any],
    db: Session = Depends(get_db),
    hasher: CredentialHasher = Depends(get_password_hasher),
    store: SessionStore = Depends(get_sessions),
):
    user = users.authenticate(db, hasher, payload.get("mobile"), payload.get("password"))
    token = store.create(user.mobile, user.role, user.name)
    log.info("user_logged_in", mobile=user.mobile, role=user.role)
    return {"success": True, "user": {"name": user.name, "mobile": user.mobile, "role": user.role, "token": token}}


@app.post("/api/logout")
async def logout(request: Request, store: SessionStore = Depends(get_sessions)):
    token = request.headers.get("x-token")
    try:
        body = await request.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("token"):
        token = body["token"]
    store.destroy(token)
    return {"success": True}


# ---------------- USER MANAGEMENT -------------------
@app.get("/api/users")
def get_users(session: SessionInfo = Depends(require_session), db: Session = Depends(get_db)):
    return users.list_users(db)


@app.post("/api/users/role")
def set_role(payload: Dict[str, Any], admin: SessionInfo = Depends(require_admin), db: Session = Depends(get_db)):
    users.change_role(db, admin, payload.get("targetMobile"), payload.get("newRole"))
    return {"success": True}


# ---------------- RECORDS -------------------
@app.get("/api/records")
def get_records(db: Session = Depends(get_db)):
    return ledger.list_due(db)


@app.post("/api/records")
def save_record(payload: Dict[str, Any], admin: SessionInfo = Depends(require_admin), db: Session = Depends(get_db)):
    ledger.upsert_due(
        db,
        payload.get("name"),
        payload.get("period"),
        payload.get("amount"),
        payload.get("status"),
        payload.get("paidDate"),
    )
    return {"success": True}


# ---------------- EXPENSES -------------------
@app.get("/api/expenses")
def get_expenses(db: Session = Depends(get_db)):
    return ledger.list_expenses(db)


@app.post("/api/expenses")
def add_expense(payload: Dict[str, Any], admin: SessionInfo = Depends(require_admin), db: Session = Depends(get_db)):
    expense = ledger.add_expense(
        db,
        payload.get("description"),
        payload.get("amount"),
        payload.get("date"),
        payload.get("category"),
    )
    return {"success": True, "expense": expense.to_dict()}


@app.delete("/api/expenses/{expense_id}")
def delete_expense(expense_id: str, admin: SessionInfo = Depends(require_admin), db: Session = Depends(get_db)):
    ledger.remove_expense(db, expense_id)
    return {"success": True}


@app.get("/api/summary")
def summary_api(db: Session = Depends(get_db)):
    return ledger.summary(db)


# ---------------- MEMBERS -------------------
@app.get("/api/members")
def get_members(db: Session = Depends(get_db)):
    return members.list_members(db)


@app.post("/api/members")
def save_members(payload: Dict[str, Any], admin: SessionInfo = Depends(require_admin), db: Session = Depends(get_db)):
    members.replace_all(db, admin, payload.get("members"))
    return {"success": True}


@app.get("/api/health", include_in_schema=False)
def health():
    return {"status": "ok"}


if os.path.isdir(cfg.STATIC_DIR):
    app.mount("/", StaticFiles(directory=cfg.STATIC_DIR, html=True), name="static")


def run() -> None:
    uvicorn.run(app, host=cfg.HOST, port=cfg.PORT, log_config=None)


if __name__ == "__main__":
    run()
