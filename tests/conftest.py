import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["TESTING"] = "true"
os.environ["SMTP_HOST"] = ""
os.environ["SMTP_USER"] = ""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import itmaint.models  # noqa: F401
from itmaint.core.security import create_access_token, get_password_hash
from itmaint.database import get_db
from itmaint.db.base import Base
from itmaint.main import app
from itmaint.models.equipment import Equipment, EquipmentStatus
from itmaint.models.user import User, UserRole

TEST_PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, username, role, email=None):
    user = User(
        username=username,
        email=email,
        full_name=username.title(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user):
    token = create_access_token(data={"sub": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_password():
    return TEST_PASSWORD


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin", UserRole.ADMIN, "admin@example.com")


@pytest.fixture
def technician_user(db):
    return _make_user(db, "tech", UserRole.TECHNICIAN, "tech@example.com")


@pytest.fixture
def viewer_user(db):
    return _make_user(db, "viewer", UserRole.VIEWER)


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def technician_headers(technician_user):
    return _headers(technician_user)


@pytest.fixture
def viewer_headers(viewer_user):
    return _headers(viewer_user)


@pytest.fixture
def make_equipment(db):
    def factory(name="Laptop 01", type="laptop", purchase_date=date(2024, 3, 15),
                status=EquipmentStatus.ACTIVE, **extra):
        equipment = Equipment(
            name=name,
            type=type,
            purchase_date=purchase_date,
            status=status.value,
            **extra,
        )
        db.add(equipment)
        db.commit()
        db.refresh(equipment)
        return equipment
    return factory
