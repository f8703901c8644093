from __future__ import annotations

import itertools
import os
from decimal import Decimal

# Settings are read at import time; configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from lims.core.hashing import hash_password  # noqa: E402
from lims.core.jwt import create_user_token  # noqa: E402
from lims.database import Base, get_db  # noqa: E402
from lims.main import app  # noqa: E402
from lims.models.categories import Category  # noqa: E402
from lims.models.components import Component  # noqa: E402
from lims.models.users import User, UserRole  # noqa: E402

TEST_PASSWORD = "lab-pass-123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    counter = itertools.count(1)

    def _make(role: UserRole = UserRole.USER, is_active: bool = True, email: str | None = None):
        n = next(counter)
        prefix = role.value.lower()
        user = User(
            username=f"{prefix}{n}",
            email=email or f"{prefix}{n}@lab.com",
            password_hash=TEST_PASSWORD_HASH,
            first_name="Test",
            last_name=role.value.title(),
            role=role.value,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture()
def make_category(db_session):
    counter = itertools.count(1)

    def _make(name: str | None = None):
        category = Category(name=name or f"Category {next(counter)}")
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make


@pytest.fixture()
def category(make_category):
    return make_category("Resistors")


@pytest.fixture()
def make_component(db_session, category, admin):
    counter = itertools.count(1)

    def _make(
        quantity: int = 10,
        threshold: int = 5,
        unit_price: str = "2.50",
        part_number: str | None = None,
        name: str | None = None,
        last_outward_date=None,
        **fields,
    ):
        n = next(counter)
        component = Component(
            name=name or f"Component {n}",
            part_number=part_number or f"PART-{n:04d}",
            quantity=quantity,
            critical_low_threshold=threshold,
            unit_price=Decimal(unit_price),
            category_id=category.id,
            created_by=admin.id,
            last_outward_date=last_outward_date,
            **fields,
        )
        db_session.add(component)
        db_session.commit()
        db_session.refresh(component)
        return component

    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}
