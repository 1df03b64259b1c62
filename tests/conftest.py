import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET_KEY"] = "test-secret"
os.environ["SMTP_HOST"] = ""
os.environ["ADMIN_EMAIL"] = ""

import pytest
from fastapi.testclient import TestClient

from db import Base, SessionLocal, engine, seed_roles
from main import app
from services import access_requests

PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_roles(session)
    finally:
        session.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_account(db):
    """Register an account and optionally approve it with a role."""
    counter = {"n": 0}

    def _make(role=None, sections=None, email=None):
        counter["n"] += 1
        account = access_requests.register(
            db,
            email=email or f"user{counter['n']}@example.com",
            password=PASSWORD,
            first_name="Test",
            last_name=f"User{counter['n']}",
        )
        if role is not None:
            account = access_requests.approve(db, account.id, role, sections)
        return account

    return _make


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def admin_client(client, make_account):
    admin = make_account(role="SystemAdmin", email="admin@example.com")
    assert login(client, admin.email).status_code == 200
    return client
