import os
import tempfile

import pytest

_tmp = tempfile.mkdtemp(prefix="duesbook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["LEGACY_USERS_PATH"] = os.path.join(_tmp, "users.json")
os.environ["LEGACY_RECORDS_PATH"] = os.path.join(_tmp, "data.json")
os.environ["STATIC_DIR"] = os.path.join(_tmp, "no-static")
os.environ["LOG_JSON"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from duesbook import models  # noqa: E402,F401
from duesbook.db import Base, SessionLocal, engine  # noqa: E402
from duesbook.hashing import LegacyDigestHasher, PasslibHasher  # noqa: E402
from duesbook.main import app  # noqa: E402
from duesbook.sessions import SessionStore  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def hasher():
    return PasslibHasher()


@pytest.fixture
def legacy_hasher():
    return LegacyDigestHasher()


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore("test-secret", ttl_seconds=8 * 60 * 60, clock=clock)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def signup(client, mobile, password, name):
    return client.post("/api/signup", json={"mobile": mobile, "password": password, "name": name})


def login_headers(client, mobile, password):
    resp = client.post("/api/login", json={"mobile": mobile, "password": password})
    assert resp.status_code == 200, resp.text
    user = resp.json()["user"]
    return {"X-Mobile": user["mobile"], "X-Token": user["token"]}


@pytest.fixture
def admin_headers(client):
    signup(client, "9876543210", "secret1", "Deepak")
    return login_headers(client, "9876543210", "secret1")


@pytest.fixture
def viewer_headers(client, admin_headers):
    signup(client, "9876543211", "secret2", "Lokesh")
    return login_headers(client, "9876543211", "secret2")
