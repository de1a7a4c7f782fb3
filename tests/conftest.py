import os
import sys
from unittest.mock import MagicMock

import fakeredis
import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yoga_service.infrastructure.db import Base, get_db
from yoga_service.infrastructure import models
from yoga_service.infrastructure.security import create_access_token
from yoga_service.interfaces.http.routers.auth import get_limiter
from yoga_service.main import app

# Тестовая БД в памяти: одно соединение на все потоки TestClient
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False, expire_on_commit=False)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Отключаем rate limiting в тестах
def override_get_limiter():
    mock_limiter = MagicMock()
    def noop_limit(*args, **kwargs):
        def decorator(func):
            return func
        return decorator
    mock_limiter.limit = noop_limit
    return mock_limiter


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_limiter] = override_get_limiter


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Redis в памяти вместо настоящего"""
    server = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr("yoga_service.infrastructure.cache.get_redis", lambda: server)
    return server


@pytest.fixture
def client():
    yield TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_header(email: str, **claims) -> dict:
    token = create_access_token({"email": email, **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db):
    def _make(email: str, role: str = "student", name: str | None = None):
        row = models.User(email=email, role=role, name=name or email.split("@")[0])
        db.add(row); db.commit(); db.refresh(row)
        return row
    return _make


@pytest.fixture
def make_class(db):
    def _make(instructor_email: str = "guru@example.com", name: str = "Morning Flow",
              seats: int = 5, enrolled: int = 0, status: str = "approved", price: float = 20.0):
        row = models.YogaClass(
            name=name,
            instructor_email=instructor_email,
            instructor_name="Guru",
            available_seats=seats,
            total_enrolled=enrolled,
            status=status,
            price=price,
        )
        db.add(row); db.commit(); db.refresh(row)
        return row
    return _make


@pytest.fixture
def admin(make_user):
    make_user("admin@example.com", role="admin", name="Admin")
    return auth_header("admin@example.com")


@pytest.fixture
def instructor(make_user):
    make_user("guru@example.com", role="instructor", name="Guru")
    return auth_header("guru@example.com")


@pytest.fixture
def student(make_user):
    make_user("student@example.com", role="student", name="Student")
    return auth_header("student@example.com")
