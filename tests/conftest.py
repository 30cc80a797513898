"""
Pytest fixtures for the stock service.

Each test gets a fresh in-memory SQLite schema, a session bound to it,
small factories for products/customers/sales, and a TestClient wired to
the same session.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stock.database import Base, get_db
from stock.main import app
from stock.models.product import UnitOfMeasure
from stock.schemas.customer import CustomerCreate
from stock.schemas.inventory import PurchaseCreate
from stock.schemas.product import ProductCreate
from stock.schemas.sale import SaleCreate, SaleItemCreate
from stock.services import customer_service, inventory_service, product_service, sale_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    """Create a product, optionally stocked through a purchase movement."""
    counter = {"n": 0}

    def _make(name=None, price="10.00", stock=0, unit=UnitOfMeasure.UNIT):
        counter["n"] += 1
        product = product_service.create_product(
            db,
            ProductCreate(
                name=name or f"Wine {counter['n']}",
                description="Red",
                price=Decimal(price),
                unit_of_measure=unit,
            ),
        )
        if stock:
            inventory_service.create_purchase(db, PurchaseCreate(product_id=product.id, quantity=stock))
        return product

    return _make


@pytest.fixture
def customer(db):
    return customer_service.create_customer(
        db, CustomerCreate(name="Maria Souza", email="maria@example.com", phone="(11) 99999-0000")
    )


@pytest.fixture
def make_sale(db, customer):
    def _make(*lines):
        data = SaleCreate(
            customer_id=customer.id,
            items=[SaleItemCreate(product_id=p.id, quantity=q) for p, q in lines],
        )
        return sale_service.create_sale(db, data)

    return _make


@pytest.fixture
def on_hand(db):
    """Read a product's on-hand quantity straight from the database."""

    def _on_hand(product_id: str) -> int:
        db.expire_all()
        return inventory_service.get_inventory_by_product_id(db, product_id).quantity

    return _on_hand
