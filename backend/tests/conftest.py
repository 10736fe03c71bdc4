# backend/tests/conftest.py
"""
Pytest configuration shared by every test.

Each test gets its own in-memory SQLite database, an in-memory payment
gateway and a console email sender, so nothing here can reach Stripe,
Resend or a real database.
"""

import os

# Set testing mode BEFORE any tutorlink imports
os.environ["is_testing"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_GATEWAY_FAKE"] = "true"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["STRIPE_PLATFORM_FEE_PERCENTAGE"] = "15"

from decimal import Decimal
from typing import Callable, Dict, Iterator, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorlink.api.dependencies.services import get_notification_client, get_payment_gateway
from tutorlink.auth import create_access_token, get_password_hash
from tutorlink.core.enums import RoleName
from tutorlink.database import build_engine, get_db, init_db
from tutorlink.integrations import FakePaymentGateway
from tutorlink.main import app
from tutorlink.models.subject import Subject
from tutorlink.models.user import User
from tutorlink.services.email import ConsoleEmailSender
from tutorlink.services.notification_service import NotificationClient

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """Fresh in-memory database and session for each test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    engine.dispose()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def email_sender() -> ConsoleEmailSender:
    return ConsoleEmailSender()


@pytest.fixture
def notification_client(email_sender: ConsoleEmailSender) -> NotificationClient:
    return NotificationClient(email_sender)


@pytest.fixture
def client(
    db: Session,
    payment_gateway: FakePaymentGateway,
    notification_client: NotificationClient,
) -> Iterator[TestClient]:
    """Create a test client wired to the test database and fakes."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    app.dependency_overrides[get_notification_client] = lambda: notification_client

    # No context manager: the lifespan would touch the configured database
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory that persists a user with the shared test password."""

    def _make_user(
        role: RoleName = RoleName.STUDENT,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        hourly_rate: Optional[Decimal] = None,
        **extra,
    ) -> User:
        count = db.query(User).count() + 1
        user = User(
            name=name or f"{role.value.title()} {count}",
            email=email or f"{role.value}{count}@example.com",
            hashed_password=get_password_hash(TEST_PASSWORD),
            role=role.value,
            hourly_rate=hourly_rate,
            availability=extra.pop("availability", []),
            **extra,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def test_student(make_user) -> User:
    return make_user(RoleName.STUDENT, name="Sam Student", email="student@example.com")


@pytest.fixture
def test_tutor(make_user) -> User:
    return make_user(
        RoleName.TUTOR,
        name="Tara Tutor",
        email="tutor@example.com",
        hourly_rate=Decimal("30.00"),
        bio="Algebra and geometry",
    )


@pytest.fixture
def test_admin(make_user) -> User:
    return make_user(RoleName.ADMIN, name="Ada Admin", email="admin@example.com")


@pytest.fixture
def test_subject(db: Session) -> Subject:
    subject = Subject(name="Algebra", category="Math", grade_level="High School", description="Equations")
    db.add(subject)
    db.commit()
    return subject


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(data={"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_student(test_student: User) -> Dict[str, str]:
    return auth_headers_for(test_student)


@pytest.fixture
def auth_headers_tutor(test_tutor: User) -> Dict[str, str]:
    return auth_headers_for(test_tutor)


@pytest.fixture
def auth_headers_admin(test_admin: User) -> Dict[str, str]:
    return auth_headers_for(test_admin)


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    """Bearer headers for an arbitrary user."""
    return auth_headers_for
