"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database. The API client shares
the test's session, and the payment provider, event publisher and relay
rate limiter are replaced with deterministic fakes.
"""

from decimal import Decimal
import os
from typing import Any

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IS_TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from farewelly import models  # noqa: E402,F401
from farewelly.api.dependencies.database import get_db  # noqa: E402
from farewelly.api.dependencies.services import (  # noqa: E402
    get_event_publisher,
    get_payment_provider,
    get_relay_limiter,
)
from farewelly.core.enums import UserType  # noqa: E402
from farewelly.database import Base  # noqa: E402
from farewelly.main import app  # noqa: E402
from farewelly.models.user import UserProfile  # noqa: E402
from farewelly.ratelimit.fixed_window import FixedWindowRateLimiter  # noqa: E402
from farewelly.services.payment_provider import MockPaymentProvider  # noqa: E402

from .helpers import DummyRedis, FakePublisher, deterministic_provider, make_profile  # noqa: E402


def _enable_sqlite_savepoints(engine: Any) -> None:
    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def payment_provider() -> MockPaymentProvider:
    return deterministic_provider()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def relay_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(DummyRedis(), "test", clock=lambda: 1_800_000_000.0)


@pytest.fixture
def client(db: Session, payment_provider, publisher, relay_limiter):
    """Create a test client bound to the test session and fakes."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    app.dependency_overrides[get_relay_limiter] = lambda: relay_limiter

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def family(db: Session) -> UserProfile:
    return make_profile(db, UserType.FAMILY, "family@example.nl", name="Familie de Vries")


@pytest.fixture
def other_family(db: Session) -> UserProfile:
    return make_profile(db, UserType.FAMILY, "other.family@example.nl", name="Familie Jansen")


@pytest.fixture
def director(db: Session) -> UserProfile:
    return make_profile(
        db,
        UserType.DIRECTOR,
        "director@example.nl",
        name="Pieter Bakker",
        company="Bakker Uitvaartzorg",
    )


@pytest.fixture
def venue(db: Session) -> UserProfile:
    return make_profile(
        db,
        UserType.VENUE,
        "venue@example.nl",
        name="Anna Visser",
        venue_name="Crematorium Westerveld",
        price_per_hour=Decimal("150.00"),
    )


@pytest.fixture
def other_venue(db: Session) -> UserProfile:
    return make_profile(
        db,
        UserType.VENUE,
        "other.venue@example.nl",
        name="Kees Smit",
        venue_name="Begraafplaats Zorgvlied",
        price_per_hour=Decimal("120.00"),
    )
