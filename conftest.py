# conftest.py
# -------------------------------------------------------------------------------------
# Archivo: conftest.py (raíz del proyecto)
# Propósito: preparar un entorno aislado para la suite de pytest.
#   - Variables de entorno de test ANTES de importar weddingsite (config se lee al importar).
#   - SQLite en un directorio temporal; tablas recreadas en cada test.
#   - DRY_RUN=1 (no se envían correos) y límites de rate limit altos.
#   - Fixtures: db, client (TestClient), make_user, guest, admin, auth_headers.
# -------------------------------------------------------------------------------------

import os
import shutil
import tempfile
from pathlib import Path

import pytest

_TMP_DIR = Path(tempfile.mkdtemp(prefix="weddingsite-tests-"))

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["FORCE_DB"] = "sqlite"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DRY_RUN"] = "1"
os.environ["EMAIL_PROVIDER"] = "sendgrid"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["QR_CODES_DIR"] = str(_TMP_DIR / "qr-codes")
os.environ["FRONTEND_URL"] = "https://wedding.test"
os.environ["ENABLE_MEAL_PREFERENCES"] = "1"
os.environ["API_RL_MAX"] = "100000"
os.environ["LOGIN_RL_MAX"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from weddingsite import rate_limit  # noqa: E402
from weddingsite.auth import create_access_token  # noqa: E402
from weddingsite.crud import users_crud  # noqa: E402
from weddingsite.db import Base, SessionLocal, engine  # noqa: E402
from weddingsite.main import app  # noqa: E402
from weddingsite.models import HouseholdMember  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    """Limpia el directorio temporal al terminar la suite."""
    engine.dispose()
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _fresh_database():
    """Tablas limpias y contadores de rate limit a cero en cada test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limit.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    """Factoría de usuarios: make_user(email=..., household=[("Ana", "Smith")], ...)."""
    counter = {"n": 0}

    def _make(
        full_name="Jane Smith",
        email=None,
        qr_token=None,
        household=(),
        **fields,
    ):
        counter["n"] += 1
        user = users_crud.create(
            db,
            full_name=full_name,
            email=email or f"guest{counter['n']}@example.com",
            qr_token=qr_token or f"token-{counter['n']:04d}",
            commit_immediately=False,
            **fields,
        )
        for first, last in household:
            user.household_members.append(HouseholdMember(first_name=first, last_name=last))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def guest(make_user):
    return make_user(full_name="Jane Smith", email="jane@example.com", qr_token="jane-token")


@pytest.fixture
def admin(make_user):
    return make_user(full_name="Admin User", email="admin@example.com", qr_token="admin-token", is_admin=True)


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)
