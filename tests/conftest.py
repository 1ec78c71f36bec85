"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from card_billing.api.main import create_app
from card_billing.domain.models import CreditCard
from card_billing.infrastructure.database.models import Base
from card_billing.infrastructure.database.session import get_db
from card_billing.services.billing import BillingService
from card_billing.services.events import RecordingPublisher


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})


# pysqlite does not emit BEGIN itself; without this SAVEPOINT/RELEASE would commit early
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_ana"
OTHER_USER_ID = "user_bruno"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def service(db: Session, publisher: RecordingPublisher) -> BillingService:
    return BillingService(db, publisher)


@pytest.fixture
def card(service: BillingService) -> CreditCard:
    """R$1000 limit, closes on the 10th, due on the 20th of the same month"""
    view = service.create_card(
        user_id=USER_ID,
        name="Nubank",
        limit_cents=100_000,
        closing_day=10,
        due_day=20,
        last_digits="1234",
    )
    return view.card


@pytest.fixture
def purchase_date() -> date:
    return date(2024, 3, 5)
