from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.main import app
from core.database import get_session
from core.mailer import get_mailer
from core.security import hash_password
from models.customers import Customer
from models.enums import ReservationStatus, TableLocation, UserRole
from models.reservations import Reservation
from models.tables import Table
from models.users import User

PASSWORD = "secret123"


class FakeMailer:
    """Guarda los correos en memoria en lugar de enviarlos."""

    def __init__(self):
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="mailer")
def mailer_fixture():
    return FakeMailer()


@pytest.fixture(name="client")
def client_fixture(session, mailer):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_mailer] = lambda: mailer
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _create_user(session, username, role):
    user = User(
        name=username.title(),
        username=username,
        password=hash_password(PASSWORD),
        email=f"{username}@example.com",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def _login(client, username):
    response = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def staff_user(session):
    return _create_user(session, "staff", UserRole.STAFF)


@pytest.fixture
def manager_user(session):
    return _create_user(session, "manager", UserRole.MANAGER)


@pytest.fixture
def staff_headers(client, staff_user):
    return _login(client, staff_user.username)


@pytest.fixture
def manager_headers(client, manager_user):
    return _login(client, manager_user.username)


@pytest.fixture
def make_table(session):
    def factory(number, capacity=4, location=TableLocation.INDOOR_STANDARD, is_active=True):
        table = Table(number=number, capacity=capacity, location=location, is_active=is_active)
        session.add(table)
        session.commit()
        session.refresh(table)
        return table
    return factory


@pytest.fixture
def make_customer(session):
    counter = {"n": 0}

    def factory(email=None, email_consent=False, is_vip=False):
        counter["n"] += 1
        customer = Customer(
            first_name="Guest",
            last_name=f"Number{counter['n']}",
            email=email or f"guest{counter['n']}@example.com",
            email_consent=email_consent,
            data_processing_consent=True,
            is_vip=is_vip,
        )
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer
    return factory


@pytest.fixture
def make_reservation(session, make_customer):
    def factory(table, date_time: datetime, duration=120, status=ReservationStatus.CONFIRMED, party_size=2, customer=None):
        customer = customer or make_customer()
        reservation = Reservation(
            customer_id=customer.id,
            table_id=table.id if table is not None else None,
            date_time=date_time,
            duration=duration,
            status=status,
            party_size=party_size,
        )
        session.add(reservation)
        session.commit()
        session.refresh(reservation)
        return reservation
    return factory
