import os
import sys
import time
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are read at import time; keep the default Postgres URL out of tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ALLOW_PUBLIC_REGISTER", "true")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from portfolio.db.base import Base
from portfolio.db import session as session_module
from portfolio.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
import portfolio.models  # noqa: F401
from portfolio.core.security import create_access_token, hash_password
from portfolio.models.user import User, UserRole


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))


# Configure test DB (SQLite in-memory) at import time so every module using
# portfolio.db.session.SessionLocal gets the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + readiness probe).
_mem_redis = _MemoryRedis()
import portfolio.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis


TEST_PASSWORD = "testpass123"
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def make_user():
    """Create a user straight in the database and return (user_id, auth headers)."""

    def _make(role: UserRole = UserRole.teacher, **fields):
        email = fields.pop("email", None) or f"{role.value}_{uuid.uuid4().hex[:8]}@example.com"
        with session_module.SessionLocal() as s:
            user = User(email=email, role=role, password_hash=_TEST_PASSWORD_HASH, **fields)
            s.add(user)
            s.commit()
            s.refresh(user)
            uid = user.id
        token = create_access_token(user_id=str(uid), role=role.value)
        return uid, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def teacher(make_user):
    return make_user(UserRole.teacher, first_name="Sara", last_name="Ali")


@pytest.fixture()
def other_teacher(make_user):
    return make_user(UserRole.teacher, first_name="Omar", last_name="Hassan")


@pytest.fixture()
def principal(make_user):
    return make_user(UserRole.admin, first_name="Huda", last_name="Salem")


@pytest.fixture()
def creator(make_user):
    return make_user(UserRole.creator)


@pytest.fixture()
def create_indicator(client):
    def _create(headers, *, title="Lesson planning", criteria=("Plan", "Deliver", "Reflect")):
        r = client.post("/api/indicators", json={"title": title, "criteria": list(criteria)}, headers=headers)
        assert r.status_code == 200, r.text
        return r.json()

    return _create
