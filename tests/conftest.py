import itertools
import os
import sys
import tempfile

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Настройка тестового окружения: до импорта приложения, settings читаются один раз
_TMP_DIR = tempfile.mkdtemp(prefix="dorm-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_EXPIRES_IN"] = "7d"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_ADMIN"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient

from dorm_service.domain.entities import Role
from dorm_service.infrastructure.db import engine, SessionLocal
from dorm_service.infrastructure.models import Base
from dorm_service.infrastructure.repositories import UserRepository
from dorm_service.main import app

_ids = itertools.count(1)


@pytest.fixture(scope="function")
def client():
    # Чистая БД на каждый тест; startup создаёт таблицы и admin@local
    Base.metadata.drop_all(bind=engine)
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(client):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """Создаёт пользователя напрямую через репозиторий"""
    def _make(role: Role = Role.student, email: str | None = None, name: str = "Test User",
              password: str = "password123"):
        email = email or f"user{next(_ids)}@example.com"
        return UserRepository(db).create(email, name, app.state.hasher.hash(password), role)
    return _make


@pytest.fixture
def headers_for():
    """Заголовок Authorization с настоящим JWT для пользователя"""
    def _headers(user):
        token = app.state.tokens.issue(user.id, user.role, user.email)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_headers(make_user, headers_for):
    return headers_for(make_user(Role.admin))


@pytest.fixture
def manager_headers(make_user, headers_for):
    return headers_for(make_user(Role.dorm_manager))


@pytest.fixture
def student_user(make_user):
    return make_user(Role.student)


@pytest.fixture
def student_headers(student_user, headers_for):
    return headers_for(student_user)


@pytest.fixture
def bed_factory(client, manager_headers):
    """Корпус -> комната -> кровать через API, возвращает id кровати"""
    def _bed(building: str = "Block A", floor: int = 1, number: str = "101", label: str = "A"):
        b = client.post("/buildings", json={"name": building}, headers=manager_headers).json()
        r = client.post("/rooms", json={"buildingId": b["id"], "floor": floor, "number": number},
                        headers=manager_headers).json()
        bed = client.post("/beds", json={"roomId": r["id"], "label": label}, headers=manager_headers).json()
        return bed["id"]
    return _bed
