import os

# Must be set before agenda modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from agenda.clock import Clock, get_clock  # noqa: E402
from agenda.database import Base, get_db  # noqa: E402
from agenda.main import app  # noqa: E402
from agenda.models import Business, Professional, Service, User  # noqa: E402
from agenda.security_utils import create_access_token, hash_password  # noqa: E402
from agenda.session_store import MemorySessionStore, get_session_store  # noqa: E402

# Monday
TODAY = date(2024, 3, 11)
PASSWORD = "s3cret-pass"


class FixedClock(Clock):
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current.replace(tzinfo=timezone.utc)

    def local_now(self) -> datetime:
        return self.current


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 11, 9, 0))


@pytest.fixture
def sessions():
    return MemorySessionStore()


@pytest.fixture
def client(session_factory, clock, sessions):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_session_store] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db_session):
    account = User(
        email="owner@example.com",
        password_hash=hash_password(PASSWORD),
        full_name="Ana Owner",
        email_verified=True,
    )
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture
def business(db_session, user):
    """A business with two professionals and two services"""
    tenant = Business(
        user_id=user.id,
        name="Studio Uno",
        admin_name="Ana Owner",
        global_open_time="09:00",
        global_close_time="18:00",
        global_duration=30,
    )
    db_session.add(tenant)
    db_session.flush()

    laura = Professional(
        business_id=tenant.id, external_id="prof-1", first_name="Laura", last_name="Diaz"
    )
    marco = Professional(
        business_id=tenant.id, external_id="prof-2", first_name="Marco", last_name="Ruiz"
    )
    db_session.add_all([laura, marco])
    db_session.flush()

    haircut = Service(
        business_id=tenant.id,
        external_id="svc-cut",
        name="Haircut",
        duration=30,
        price=Decimal("100.00"),
    )
    color = Service(
        business_id=tenant.id,
        external_id="svc-color",
        name="Color",
        duration=60,
        price=Decimal("50.00"),
    )
    haircut.professionals = [laura, marco]
    color.professionals = [laura]
    db_session.add_all([haircut, color])
    db_session.commit()
    return tenant


@pytest.fixture
def auth_headers(user, sessions):
    token = create_access_token(user.id, user.email)
    sessions.save(user.id, {"userId": user.id, "email": user.email, "token": token})
    return {"Authorization": f"Bearer {token}"}


def booking(**overrides) -> dict:
    payload = {
        "clientName": "Juan Perez",
        "clientEmail": "juan@example.com",
        "clientPhone": "555-0101",
        "serviceId": "svc-cut",
        "professionalId": "prof-1",
        "date": TODAY.isoformat(),
        "startTime": "10:00",
    }
    payload.update(overrides)
    return payload
