import os

# Settings exige DATABASE_URL; os testes usam SQLite em memória
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.db.base  # noqa: F401
from app.core.security import create_access_token
from app.db.base_class import Base
from app.db.session import enable_sqlite_foreign_keys
from app.models.agenda import Agenda
from app.models.user import Role, User
from app.services import templates as template_store
from app.services.orchestrator import Orchestrator

# segunda-feira; as terças do cenário são 2024-06-04 e 2024-06-11
TODAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
NEXT_TUESDAY = date(2024, 6, 11)


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def TestingSessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(TestingSessionLocal):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(TestingSessionLocal):
    """Test client with the database and the reference date overridden."""
    from fastapi.testclient import TestClient

    from app.db import get_db
    from app.deps import get_today
    from app.main import app as fastapi_app

    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    fastapi_app.dependency_overrides[get_today] = lambda: TODAY

    with TestClient(fastapi_app) as c:
        yield c

    fastapi_app.dependency_overrides.clear()


def _user(db_session, *, name: str, email: str, role: Role) -> User:
    user = User(name=name, email=email, role=role, is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _user(db_session, name="Admin", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def operator_user(db_session):
    return _user(
        db_session, name="Ana Souza", email="ana@example.com", role=Role.OPERATOR
    )


@pytest.fixture
def other_operator(db_session):
    return _user(
        db_session, name="Bruno Lima", email="bruno@example.com", role=Role.OPERATOR
    )


@pytest.fixture
def agenda(db_session, operator_user):
    row = Agenda(name="Consultório 1", operator_id=operator_user.id, is_active=True)
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def other_agenda(db_session, other_operator):
    row = Agenda(name="Consultório 2", operator_id=other_operator.id, is_active=True)
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def tuesday_template(db_session, agenda):
    """Horário base: terça 09:00-10:00."""
    row = template_store.create_template(
        db_session,
        agenda_id=agenda.id,
        title="Atendimento",
        weekday=TUESDAY.weekday(),
        starts_at=time(9),
        ends_at=time(10),
    )
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers


@pytest.fixture
def orchestrator_for(db_session):
    def _make(user: User) -> Orchestrator:
        return Orchestrator(db_session, user, today=TODAY)

    return _make
