# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-suite")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from selective_trading.api.v1.dependencies import get_notifier_dep
from selective_trading.core.errors import NotificationDeliveryFailed
from selective_trading.core.security import create_access_token
from selective_trading.db.session import Base
from selective_trading.db.session import get_db as app_get_session
from selective_trading.main import app as fastapi_app
from selective_trading.models import Product, User

TEST_DB_URL = "sqlite://"


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so SAVEPOINTs nest correctly."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


@dataclass
class SentCode:
    to: str
    code: str
    name: str


class RecordingNotifier:
    """Notifier double that keeps every code instead of emailing it."""

    def __init__(self) -> None:
        self.sent: list[SentCode] = []
        self.fail = False

    def send_verification_code(self, to: str, code: str, name: str) -> None:
        if self.fail:
            raise NotificationDeliveryFailed("Failed to send verification email")
        self.sent.append(SentCode(to, code, name))

    @property
    def last_code(self) -> str:
        return self.sent[-1].code


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session whose commits and rollbacks only touch savepoints of one outer transaction."""
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    notifier: RecordingNotifier,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_notifier_dep] = lambda: notifier
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_notifier_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _persist(db_session: Session, obj):
    db_session.add(obj)
    db_session.commit()
    db_session.refresh(obj)
    return obj


@pytest.fixture()
def customer(db_session: Session) -> User:
    """A registered, active customer."""
    return _persist(
        db_session,
        User(
            phone="96899887766",
            email="buyer@example.com",
            name="Salim",
            company_name="Salim Groceries",
            address="Ruwi, Muscat",
        ),
    )


@pytest.fixture()
def other_customer(db_session: Session) -> User:
    return _persist(
        db_session,
        User(
            phone="96891112222",
            email="other@example.com",
            name="Huda",
            company_name="Huda Mart",
            address="Sohar",
        ),
    )


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    return _persist(
        db_session,
        User(phone="96890000001", email="admin@example.com", name="Admin", is_admin=True),
    )


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(user.id, phone=user.phone, is_admin=user.is_admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(customer: User) -> dict[str, str]:
    """Return authorization headers for the primary customer."""
    return bearer(customer)


@pytest.fixture()
def other_headers(other_customer: User) -> dict[str, str]:
    return bearer(other_customer)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture()
def products(db_session: Session) -> dict[str, Product]:
    """Two orderable products and one hidden one, keyed by slug."""
    catalogue = [
        Product(slug="laban-1l", name_en="Laban 1L", name_ar="لبن ١ لتر", sort_order=1),
        Product(slug="fresh-milk-2l", name_en="Fresh Milk 2L", name_ar="حليب طازج ٢ لتر", sort_order=2),
        Product(
            slug="ghee-500g",
            name_en="Ghee 500g",
            name_ar="سمن ٥٠٠ غرام",
            sort_order=3,
            is_available=False,
        ),
    ]
    db_session.add_all(catalogue)
    db_session.commit()
    return {product.slug: product for product in catalogue}
