"""
Pytest configuration and fixtures for tests.

Every test gets its own in-memory SQLite database with all tables, a
fakeredis client for the checkout lock and a mocked notifier, so nothing
here needs Postgres, Redis or a Celery broker.
"""

import os

#must be set before erp_pos.utils.settings is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import uuid
from decimal import Decimal
from unittest.mock import MagicMock

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from erp_pos.api import create_app
from erp_pos.api.deps import get_current_user, get_lock_service, get_notifier, get_session_store
from erp_pos.data.database import get_db, init_db
from erp_pos.data.models.product import ProductModel
from erp_pos.data.models.user import ProfileModel, UserRoleModel
from erp_pos.domain.schemas import CheckoutIn, CurrentUser
from erp_pos.services.checkout_service import CheckoutService
from erp_pos.services.lock_service import LockService
from erp_pos.services.notification_service import NotificationService
from erp_pos.services.session_store import CartSessionStore

COMPANY_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_COMPANY_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
CASHIER_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
VIEWER_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")


# ============================================================================
# database
# ============================================================================
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestSession()
    yield session
    session.close()


def make_product(db, sku, name, price, quantity, category=None, barcode=None, is_active=True, company_id=COMPANY_ID):
    product = ProductModel(
        company_id=company_id,
        sku=sku,
        name=name,
        price=Decimal(price),
        quantity=quantity,
        category=category,
        barcode=barcode,
        is_active=is_active,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def products(db):
    """Seeded catalog keyed by SKU."""
    return {
        "A1": make_product(db, "A1", "Widget", "10.00", 5, category="Tools", barcode="4006381333931"),
        "B2": make_product(db, "B2", "Gadget", "5.50", 3, category="Electronics"),
        "C3": make_product(db, "C3", "Archived Lamp", "20.00", 10, category="Lighting", is_active=False),
        "D4": make_product(db, "D4", "Empty Box", "1.00", 0, category="Tools"),
        "X9": make_product(db, "X9", "Widget Pro", "99.00", 10, category="Tools", company_id=OTHER_COMPANY_ID),
    }


@pytest.fixture
def profiles(db):
    db.add(ProfileModel(id=CASHIER_ID, company_id=COMPANY_ID, full_name="Casey Cashier"))
    db.add(ProfileModel(id=VIEWER_ID, company_id=COMPANY_ID, full_name="Vic Viewer"))
    db.add(UserRoleModel(user_id=CASHIER_ID, role="cashier"))
    db.add(UserRoleModel(user_id=VIEWER_ID, role="user"))
    db.commit()


# ============================================================================
# users / services
# ============================================================================
@pytest.fixture
def cashier():
    return CurrentUser(id=CASHIER_ID, company_id=COMPANY_ID, role="cashier")


@pytest.fixture
def viewer():
    return CurrentUser(id=VIEWER_ID, company_id=COMPANY_ID, role="user")


@pytest.fixture
def store():
    return CartSessionStore(ttl=900)


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(fake_redis):
    return LockService(client=fake_redis)


@pytest.fixture
def notifier():
    return MagicMock(spec=NotificationService)


@pytest.fixture
def buyer():
    return CheckoutIn(payment_method="cash")


@pytest.fixture
def make_checkout(db, store, lock_service, notifier):
    """Factory for CheckoutService with test doubles; kwargs override collaborators."""

    def factory(**kwargs):
        params = dict(
            db=db,
            store=store,
            lock_service=lock_service,
            notifier=notifier,
            tax_rate="0.10",
            timeout=15,
            decrement_stock=True,
            currency_code="USD",
        )
        params.update(kwargs)
        return CheckoutService(**params)

    return factory


# ============================================================================
# HTTP
# ============================================================================
@pytest.fixture
def make_client(db, store, lock_service, notifier):
    """Factory for a TestClient acting as the given user (None = real auth dependency)."""
    clients = []

    def factory(user: CurrentUser | None):
        app = create_app()

        def override_db():
            yield db

        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_session_store] = lambda: store
        app.dependency_overrides[get_lock_service] = lambda: lock_service
        app.dependency_overrides[get_notifier] = lambda: notifier
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user

        client = TestClient(app)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def client(make_client, cashier):
    return make_client(cashier)
