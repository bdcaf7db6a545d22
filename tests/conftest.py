from datetime import date, datetime

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tatamecheck.db import get_session
from tatamecheck.dependencies import get_now
from tatamecheck.main import app
from tatamecheck.models import Academy, Role, User
from tatamecheck.security import create_access_token
from tatamecheck.services.students import enroll_student

DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)

NOW = datetime(2025, 3, 10, 19, 0)
TODAY = NOW.date()
ACADEMY_LAT = -23.6183
ACADEMY_LON = -45.4211


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


def make_user(session: Session, email: str, role: str = Role.PROFESSOR, name: str = "Test User", password: str = "password") -> User:
    user = User(name=name, email=email, role=role)
    user.set_password(password)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="clock")
def clock_fixture():
    """Mutable clock; tests move time by assigning `clock["now"]`."""
    return {"now": NOW}


@pytest.fixture(name="client")
def client_fixture(session: Session, clock: dict):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_now] = lambda: clock["now"]
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="professor")
def professor_fixture(session: Session) -> User:
    return make_user(session, "prof@example.com", Role.PROFESSOR, name="Prof Silva")


@pytest.fixture(name="academy")
def academy_fixture(session: Session, professor: User) -> Academy:
    academy = Academy(
        name="TatameCheck Academia",
        latitude=ACADEMY_LAT,
        longitude=ACADEMY_LON,
        radius_meters=100,
        admin_id=professor.id,
    )
    academy.staff.append(professor)
    session.add(academy)
    session.commit()
    session.refresh(academy)
    return academy


@pytest.fixture(name="student")
def student_fixture(session: Session, academy: Academy):
    return enroll_student(
        session, academy,
        name="Aluno Teste", email="aluno@example.com", password="password",
        enrolled_on=date(2025, 1, 10),
    )
