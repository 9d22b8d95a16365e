import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.user_schemas import Principal
from storefront.utils.token import create_token_for_user


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


@pytest.fixture(name="client")
def client_fixture(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add_user(session, email, full_name, role):
    user = User(email=email, full_name=full_name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer(session):
    return _add_user(session, "ama@example.com", "Ama Mensah", "customer")


@pytest.fixture
def other_customer(session):
    return _add_user(session, "kofi@example.com", "Kofi Boateng", "customer")


@pytest.fixture
def admin(session):
    return _add_user(session, "admin@example.com", "Shop Admin", "admin")


@pytest.fixture
def products(session):
    catalog = [
        Product(id=7, name="Oraimo FreePods", price=Decimal("15.00")),
        Product(id=8, name="Gala Apples (1kg)", price=Decimal("4.50")),
        Product(id=9, name="Linen Shirt", price=Decimal("22.00"), is_active=False),
    ]
    for product in catalog:
        session.add(product)
    session.commit()
    return catalog


def principal_for(user):
    return Principal(id=user.id, email=user.email, role=user.role)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def order_payload():
    """Build the checkout body the storefront client submits."""

    def _build(**overrides):
        payload = {
            "items": [{"productId": 7, "quantity": 2, "unitPrice": 15.00}],
            "total": 30.00,
            "phoneNumber": "0551234567",
            "deliveryAddress": "12 Main St",
            "deliveryRegion": "Northern",
            "paymentMethod": "momo",
        }
        payload.update(overrides)
        return payload

    return _build
