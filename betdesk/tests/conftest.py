from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

# Ensure the project root (which exposes the ``betdesk`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from betdesk.app import models  # noqa: E402
from betdesk.app.database import Base, get_db  # noqa: E402
from betdesk.app.main import app  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


def make_ticket(
    db: Session,
    *,
    package: models.Package,
    admin: models.Admin,
    created_at: datetime = BASE_TIME,
    closest_match_date: datetime = BASE_TIME,
    state: models.TicketState = models.TicketState.SUCCESS,
    course: float = 2.0,
    deposit: float = 100.0,
    checked: bool = False,
) -> models.Ticket:
    ticket = models.Ticket(
        package=package,
        admin=admin,
        created_at=created_at,
        closest_match_date=closest_match_date,
        final_state=int(state),
        final_course=course,
        deposit=deposit,
        betting_shop=int(models.BettingShop.TIPSPORT),
        checked=checked,
    )
    db.add(ticket)
    return ticket


@pytest.fixture
def ticket_factory(db_session: Session):
    def factory(**kwargs) -> models.Ticket:
        ticket = make_ticket(db_session, **kwargs)
        db_session.flush()
        return ticket

    return factory


@pytest.fixture
def seed_basic_data(db_session: Session) -> dict:
    premium = models.Package(name="Premium", is_active=True)
    basic = models.Package(name="Basic", is_active=True)
    legacy = models.Package(name="Legacy", is_active=False)
    john = models.Admin(first_name="John", last_name="Smith", email="john@example.com")
    smith = models.Admin(first_name="Smith", last_name="John", email="smith@example.com")
    jane = models.Admin(first_name="Jane", last_name="Doe", email="jane@example.com")
    db_session.add_all([premium, basic, legacy, john, smith, jane])
    db_session.flush()

    tickets = [
        make_ticket(
            db_session,
            package=premium,
            admin=john,
            created_at=BASE_TIME + timedelta(days=1),
            closest_match_date=BASE_TIME + timedelta(days=2),
            state=models.TicketState.SUCCESS,
            course=1.5,
        ),
        make_ticket(
            db_session,
            package=premium,
            admin=jane,
            created_at=BASE_TIME + timedelta(days=2),
            closest_match_date=BASE_TIME + timedelta(days=3),
            state=models.TicketState.FAIL,
            course=3.2,
        ),
        make_ticket(
            db_session,
            package=basic,
            admin=smith,
            created_at=BASE_TIME + timedelta(days=3),
            closest_match_date=BASE_TIME + timedelta(days=4),
            state=models.TicketState.NEW,
            course=2.4,
        ),
        make_ticket(
            db_session,
            package=legacy,
            admin=jane,
            created_at=BASE_TIME + timedelta(days=4),
            closest_match_date=BASE_TIME + timedelta(days=5),
            state=models.TicketState.SUCCESS,
            course=1.9,
            checked=True,
        ),
    ]
    db_session.commit()

    return {
        "packages": {"premium": premium, "basic": basic, "legacy": legacy},
        "admins": {"john": john, "smith": smith, "jane": jane},
        "tickets": tickets,
    }
