"""Shared test helpers: fresh in-memory schema per test, user seeding and logged-in clients."""

import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from lunch_api.core.config import get_settings
from lunch_api.core.database import SessionLocal, engine
from lunch_api.core.security import PasswordService, SessionService
from lunch_api.main import app
from lunch_api.models import Base, User, UserRole
from lunch_api.models.base import utcnow

PASSWORD = "correct-horse-battery"

passwords = PasswordService(rounds=4)


def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def create_user(
    db,
    email: str = "user@example.com",
    name: str = "Test User",
    password: str | None = PASSWORD,
    role: UserRole = UserRole.USER,
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=passwords.hash(password) if password else None,
        role=role.value,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def session_service() -> SessionService:
    return SessionService.from_settings(get_settings())


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {session_service().generate_access_token(user)}"}


def event_payload(**overrides) -> dict:
    now = utcnow()
    payload = {
        "title": "Friday lunch",
        "event_date": (now + timedelta(days=1)).isoformat(),
        "order_deadline": (now + timedelta(hours=20)).isoformat(),
    }
    payload.update(overrides)
    return payload


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema and a session per test."""

    def setUp(self) -> None:
        reset_database()
        self.db = SessionLocal()

    def tearDown(self) -> None:
        self.db.close()


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient bound to the app."""

    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def login(self, email: str, password: str = PASSWORD):
        return self.client.post("/api/auth/login", json={"email": email, "password": password})

    def fresh(self, user: User) -> User:
        """Re-read a user after the app changed it in another session."""
        self.db.expire_all()
        return self.db.get(User, user.id)
