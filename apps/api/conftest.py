"""Shared pytest fixtures: in-memory database, users with roles, catalog rows"""
import os

# Must be set before the app modules read them at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("REDIS_URL", None)

from datetime import date, timedelta
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

import models  # noqa: F401  register tables
from auth import create_access_token, get_password_hash
from database import engine
from models import AppRole, Medicine, User, UserRoleAssignment
from services.inventory_status import apply_status
from services.token_blacklist import token_blacklist

DEFAULT_PASSWORD = "Str0ng!Pass"


@pytest.fixture(autouse=True)
def reset_database():
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)
    token_blacklist.clear()


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(roles: Iterable[AppRole] = (), email: Optional[str] = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@medstock.test",
            password_hash=get_password_hash(DEFAULT_PASSWORD),
            first_name="Test",
            last_name=f"User{counter['n']}",
            is_active=is_active,
        )
        for role in roles:
            user.role_assignments.append(UserRoleAssignment(role=role))
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def admin(make_user):
    return make_user([AppRole.ADMIN], email="admin@medstock.test")


@pytest.fixture
def pharmacist(make_user):
    return make_user([AppRole.PHARMACIST], email="pharmacist@medstock.test")


@pytest.fixture
def make_medicine(session):
    """Insert a medicine with its status derived as of today"""
    counter = {"n": 0}

    def _make_medicine(**overrides) -> Medicine:
        counter["n"] += 1
        data = dict(
            name=f"Medicine {counter['n']}",
            generic_name=f"Generic {counter['n']}",
            category="Analgesics",
            manufacturer="Acme Pharma",
            batch_number=f"B{counter['n']}",
            quantity=100,
            min_stock_level=10,
            unit_price=2.5,
            expiry_date=date.today() + timedelta(days=365),
            location="A1",
        )
        data.update(overrides)
        medicine = Medicine(**data)
        apply_status(medicine)
        session.add(medicine)
        session.commit()
        session.refresh(medicine)
        return medicine

    return _make_medicine
