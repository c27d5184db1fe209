import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from drugstock.api.deps import get_db
from drugstock.core.security import hash_password
from drugstock.db.base import Base
from drugstock.main import app
from drugstock.models import User
from drugstock.utils.jwt import create_access_refresh

STAFF_EMAIL = "staff@pharmacy.org"
STAFF_PASSWORD = "s3cret-pass"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def staff(db):
    user = User(
        name="Staff",
        email=STAFF_EMAIL,
        password_hash=hash_password(STAFF_PASSWORD),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(staff):
    access, _ = create_access_refresh(staff.email)
    return {"Authorization": f"Bearer {access}"}


@pytest.fixture
def drug_payload():
    def _make(**overrides):
        payload = {
            "name": "Parol",
            "group": "Analgesic",
            "brand": "Atabay",
            "activeIngredients": ["Paracetamol"],
            "dosage": "500 mg",
            "form": "Tablet",
            "unitsCount": 20,
            "unitsInStock": 30,
            "expirationDate": "2027-03-01",
            "isEmergency": False,
        }
        payload.update(overrides)
        return payload

    return _make
