import os

# Must be set before salesflow builds its module-level engine and settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from salesflow.application.schemas import OrderCreate, OrderItemCreate
from salesflow.application.service import OrderService
from salesflow.domain.actor import Actor
from salesflow.domain.enums import UserRole
from salesflow.domain.models import Base, OrderStatusHistory, Product, SaleOrder
from salesflow.infrastructure.auth import create_access_token
from salesflow.infrastructure.db import get_db


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'salesflow.db'}", future=True)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db):
    return OrderService(db)


@pytest.fixture
def salesperson():
    return Actor(id=uuid.uuid4(), role=UserRole.SALESPERSON)


@pytest.fixture
def other_salesperson():
    return Actor(id=uuid.uuid4(), role=UserRole.SALESPERSON)


@pytest.fixture
def manager():
    return Actor(id=uuid.uuid4(), role=UserRole.MANAGER)


@pytest.fixture
def warehouse():
    return Actor(id=uuid.uuid4(), role=UserRole.WAREHOUSE)


@pytest.fixture
def make_product(db):
    def _make(name="Widget", stock=10, price="10.00"):
        product = Product(
            code=f"PRD-{uuid.uuid4().hex[:8]}",
            name=name,
            wholesale_price=Decimal(price),
            retail_price=Decimal(price),
            stock_quantity=stock,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


def order_payload(*lines, **fields):
    """Build an OrderCreate from ``(product, quantity, unit_price)`` tuples."""
    data = {
        "customer_name": "Acme Ltd",
        "contact_person": "Jane Roe",
        "email": "buyer@acme.test",
        "shipping_address": "1 Harbour Road",
    }
    data.update(fields)
    data["items"] = [
        OrderItemCreate(product_id=product.id, quantity=quantity, unit_price=Decimal(price))
        for product, quantity, price in lines
    ]
    return OrderCreate(**data)


@pytest.fixture
def make_order(service, salesperson):
    def _make(*lines, owner=None, **fields):
        return service.create(owner or salesperson, order_payload(*lines, **fields))
    return _make


def force_status(db, order, status):
    """Put ``order`` straight into ``status``, bypassing the workflow."""
    db.execute(
        update(SaleOrder)
        .where(SaleOrder.id == order.id)
        .values(status=getattr(status, "value", status))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(order)
    return order


def history_rows(db, order):
    return (
        db.query(OrderStatusHistory)
        .filter(OrderStatusHistory.order_id == order.id)
        .order_by(OrderStatusHistory.changed_at, OrderStatusHistory.id)
        .all()
    )


@pytest.fixture
def client(session_factory):
    from salesflow.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(actor):
        token = create_access_token(actor.id, actor.role)
        return {"Authorization": f"Bearer {token}"}
    return _headers
