"""
Shared test configuration.

Points the module-level app at an in-memory SQLite database before any
`marketplace` module is imported. Each test gets its own app and in-memory
database, plus factories for users, listings and auth headers.
"""

import itertools
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from marketplace.core.config import Settings
from marketplace.core.security import create_access_token
from marketplace.db.base import Base
from marketplace.db.models.service import Service
from marketplace.db.models.user import User, UserRole
from marketplace.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_name="Test Marketplace API",
        environment="test",
        database_url="sqlite://",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        rate_limit_max_requests=1000,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    Base.metadata.create_all(bind=app.state.engine)
    yield app
    Base.metadata.drop_all(bind=app.state.engine)
    app.state.engine.dispose()


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=UserRole.SERVICE_PROVIDER, is_verified=True, is_active=True, password="secret123", **fields):
        n = next(counter)
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", f"User{n}")
        fields.setdefault("email", f"user{n}@example.com")
        fields.setdefault("phone", f"+4790000{n:03d}")
        user = User(role=role, is_verified=is_verified, is_active=is_active, **fields)
        user.password = password
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def provider(make_user):
    return make_user(role=UserRole.SERVICE_PROVIDER, business_info={"business_name": "Clean Co"})


@pytest.fixture
def customer(make_user):
    return make_user(role=UserRole.CUSTOMER)


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}

    return _headers


@pytest.fixture
def make_service(db):
    def _make(provider, **overrides):
        data = {
            "title": "Apartment cleaning",
            "description": "Thorough weekly cleaning of apartments and small houses.",
            "category": "home_services",
            "pricing": {"type": "fixed", "amount": 500},
            "service_area": {"cities": ["Oslo"]},
            "status": "active",
            "is_verified": True,
        }
        data.update(overrides)
        service = Service(provider_id=provider.id, **data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture
def service_payload():
    return {
        "title": "Garden maintenance",
        "description": "Lawn mowing, hedge trimming and seasonal garden cleanup.",
        "category": "maintenance",
        "pricing": {"type": "hourly", "amount": 450, "currency": "NOK"},
        "serviceArea": {"cities": ["Bergen", "Oslo"], "maxDistance": 30},
        "tags": ["garden", "outdoor"],
    }
