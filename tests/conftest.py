import os

#przed importem microstore.* - settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NOTIFICATIONS_ASYNC"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_PUBLIC_KEY"] = "pk_test_microstore"
os.environ["SMTP_HOST"] = ""
os.environ["INVENTORY_POLICY"] = "reject"

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import microstore.data.models  # noqa: F401
from microstore.api import create_app
from microstore.api.deps import get_lock_service, get_stripe_gateway
from microstore.data.database import Base, get_db
from microstore.data.models import ProductModel, UserModel
from microstore.integration.service_registry import ServiceRegistry
from microstore.services.cart_service import CartService
from microstore.services.lock_service import LockService
from microstore.services.notification_service import EmailChannel, InlineNotificationPublisher
from microstore.services.order_service import OrderService
from microstore.services.payment_service import PaymentService
from microstore.services.user_service import hash_password


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture()
def channel():
    return EmailChannel(enabled=True, sender="shop@test", default_recipient="orders@test", smtp_host="")


@pytest.fixture()
def publisher(db, channel):
    return InlineNotificationPublisher(db, channel)


@pytest.fixture()
def cart_service(db, lock_service):
    return CartService(db, lock_service)


@pytest.fixture()
def order_service(db, publisher):
    return OrderService(db, publisher)


@pytest.fixture()
def payment_service(db, order_service, publisher):
    return PaymentService(db, order_service, publisher)


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, is_admin=False, password="secret123"):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = UserModel(
            username=username,
            password=hash_password(password),
            email=f"{username}@example.com",
            first_name="Test",
            last_name="User",
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_product(db):
    counter = {"n": 0}

    def _make(price="10.00", inventory=10, name=None, category="General", description=None):
        counter["n"] += 1
        product = ProductModel(
            name=name or f"Product {counter['n']}",
            description=description,
            price=Decimal(price),
            sku=f"SKU-{counter['n']:03d}",
            inventory=inventory,
            category=category,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def place_order(cart_service, order_service):
    """Koszyk z podanych (produkt, ilosc) -> zamowienie."""

    def _place(user, lines, address="1 Main St"):
        for product, quantity in lines:
            cart_service.add_item_to_cart(user.id, product.id, quantity)
        return order_service.create_order_from_cart(user.id, address)

    return _place


@pytest.fixture()
def client(session_factory, lock_service):
    app = create_app(registry=ServiceRegistry())

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_stripe_gateway] = lambda: None

    with TestClient(app) as c:
        yield c
