import os
from decimal import Decimal

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_dabba")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test_razorpay_secret")
os.environ.setdefault("ENV", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import dabba.models  # noqa: E402,F401
from dabba.config import settings  # noqa: E402
from dabba.database import get_session  # noqa: E402
from dabba.main import app  # noqa: E402
from dabba.models import Cook, MenuItem, User  # noqa: E402
from dabba.services.cart_validator import validate_checkout  # noqa: E402
from dabba.services.order_writer import create_order  # noqa: E402
from dabba.services.payment_gateway import RazorpayGateway, get_gateway  # noqa: E402
from dabba.services.payment_reconciler import PaymentReconciler  # noqa: E402
from dabba.utils.hash import hash_password  # noqa: E402
from dabba.utils.token import AuthSession  # noqa: E402
from tests.helpers import COMPLETE_ADDRESS, FakeOrderApi, bearer, cart_line  # noqa: E402


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="order_api")
def order_api_fixture():
    return FakeOrderApi()


@pytest.fixture(name="gateway")
def gateway_fixture(order_api):
    gateway = RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret)
    gateway.client.order = order_api
    return gateway


@pytest.fixture(name="reconciler")
def reconciler_fixture(session, gateway):
    return PaymentReconciler(session, gateway)


@pytest.fixture(name="customer")
def customer_fixture(session):
    user = User(
        email="asha@example.com",
        password=hash_password("hostel-food-123"),
        first_name="Asha",
        last_name="Kulkarni",
        phone="9876543210",
        role="student",
        address=dict(COMPLETE_ADDRESS),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="cook_user")
def cook_user_fixture(session):
    user = User(
        email="meena@example.com",
        password=hash_password("tiffin-pass-123"),
        first_name="Meena",
        last_name="Patil",
        phone="9123456780",
        role="cook",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="cook")
def cook_fixture(session, cook_user):
    cook = Cook(
        user_id=cook_user.id,
        first_name="Meena",
        last_name="Patil",
        kitchen_name="Meena's Tiffins",
    )
    session.add(cook)
    session.commit()
    session.refresh(cook)
    return cook


@pytest.fixture(name="menu")
def menu_fixture(session, cook):
    items = [
        MenuItem(cook_id=cook.id, name="Veg Thali", price=Decimal("100.00")),
        MenuItem(cook_id=cook.id, name="Poha", price=Decimal("45.50")),
    ]
    session.add_all(items)
    session.commit()
    for item in items:
        session.refresh(item)
    return items


@pytest.fixture(name="auth")
def auth_fixture(customer):
    return AuthSession(user_id=customer.id, email=customer.email)


@pytest.fixture(name="make_order")
def make_order_fixture(session, customer, auth, menu):
    """Validated + written order for the standard cart: 2 x Veg Thali @ 100."""

    def _make(payment_method="online", lines=None):
        checkout = validate_checkout(auth, customer, lines or [cart_line(menu[0], 2)])
        return create_order(session, checkout, payment_method, tax_rate=settings.tax_rate)

    return _make


@pytest.fixture(name="client")
def client_fixture(session, gateway):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_gateway] = lambda: gateway
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="customer_headers")
def customer_headers_fixture(customer):
    return bearer(customer)


@pytest.fixture(name="cook_headers")
def cook_headers_fixture(cook, cook_user):
    return bearer(cook_user)
