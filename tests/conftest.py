import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ATLAS_APP_CODE", "EVENT_STAFF_TEST")
os.environ.setdefault("QR_JWT_SECRET", "test-secret-key-for-qr-tokens-0123456789")
os.environ.setdefault("LOGGING_ENABLED", "false")
os.environ.setdefault("ENCRYPTION_ENABLED", "false")

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from atams.db import Base

import app.models  # noqa: F401  registers the tables on Base
from app.core.constants import EventStatus, ParticipantStatus
from app.models import Event, EventRole, Participant
from app.utils.time_utils import utcnow

ADMIN_ID = 100
OTHER_ADMIN_ID = 200
STAFF_ID = 1
OTHER_STAFF_ID = 2


@pytest.fixture()
def engine(tmp_path):
    main_db = tmp_path / "main.db"
    staffing_db = tmp_path / "staffing.db"

    engine = create_engine(
        f"sqlite:///{main_db}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        # Let SQLAlchemy drive transactions so SAVEPOINT works on pysqlite
        dbapi_connection.isolation_level = None
        dbapi_connection.execute(f"ATTACH DATABASE '{staffing_db}' AS staffing")

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_event(db, admin_id=ADMIN_ID, status=EventStatus.PUBLISHED.value, starts_in=timedelta(hours=-1),
               duration=timedelta(hours=4), title="Stadium Concert"):
    start = utcnow() + starts_in
    ev = Event(
        ev_title=title,
        ev_status=status,
        ev_created_by=admin_id,
        ev_start_time=start,
        ev_end_time=start + duration,
        ev_is_deleted=False,
        ev_created_at=utcnow(),
    )
    db.add(ev)
    db.commit()
    return ev


def make_role(db, event, name="Usher", capacity=5, price="150.00", filled=0):
    role = EventRole(
        ro_event_id=event.ev_id,
        ro_name=name,
        ro_price=Decimal(price),
        ro_capacity=capacity,
        ro_filled_slots=filled,
        ro_is_active=True,
        ro_is_deleted=False,
    )
    db.add(role)
    db.commit()
    return role


def make_participant(db, event, role, staff_id=STAFF_ID, status=ParticipantStatus.APPLIED.value):
    participant = Participant(
        pa_event_id=event.ev_id,
        pa_staff_id=staff_id,
        pa_role_id=role.ro_id,
        pa_role_name=role.ro_name,
        pa_role_price=role.ro_price,
        pa_status=status,
        pa_applied_at=utcnow(),
    )
    db.add(participant)
    db.commit()
    return participant
