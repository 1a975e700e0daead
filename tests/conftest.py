import os

# Configure before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEFAULT_TIMEZONE"] = "UTC"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chairbook import models  # noqa: E402,F401
from chairbook.context import BusinessContext  # noqa: E402
from chairbook.database import Base, get_db  # noqa: E402
from chairbook.domain.scheduling.repository import AppointmentRepository  # noqa: E402

BUSINESS_ID = "salon-1"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


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
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ctx():
    return BusinessContext(business_id=BUSINESS_ID)


@pytest.fixture
def make_appointment(db, ctx):
    """Insert an appointment row directly, bypassing service validation"""

    def _make(**overrides):
        data = {
            "title": "Haircut",
            "service_name": "Haircut",
            "start_at": utc(2026, 3, 2, 10, 0),
            "duration_min": 60,
            "is_recurring": False,
            "rrule": None,
            "timezone": "UTC",
            "status": "pending",
            "payment_method": "cash",
            "list_price": 1000.0,
            "discount": 10.0,
            "final_price": 900.0,
            "payment_status": "pending",
        }
        data.update(overrides)
        return AppointmentRepository.insert(db, ctx, **data)

    return _make


@pytest.fixture
def api(session_factory):
    from chairbook.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app, headers={"X-Business-Id": BUSINESS_ID})
    yield client
    app.dependency_overrides.clear()
