"""Shared fixtures: a throwaway SQLite database per test and a client wired to it."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import smallbiz.models  # noqa: F401
from smallbiz.db.database import Base, get_db
from smallbiz.main import app
from smallbiz.models import Customer, PaymentMethod, PaymentStatus, Product, Sale, SaleItem


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'smallbiz-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_product(db_session):
    def _make(
        name: str = "Widget",
        price: str = "10.00",
        stock_quantity: int | None = 100,
        is_service: bool = False,
        low_stock_threshold: int | None = 10,
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            stock_quantity=None if is_service else stock_quantity,
            is_service=is_service,
            low_stock_threshold=None if is_service else low_stock_threshold,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_customer(db_session):
    def _make(name: str = "Siti Rahma", email: str | None = "siti@example.com") -> Customer:
        customer = Customer(name=name, email=email)
        db_session.add(customer)
        db_session.commit()
        db_session.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_sale(db_session):
    """Insert a sale row directly, bypassing validation and stock handling."""

    def _make(
        lines: list[tuple[Product, str, str]],
        *,
        customer: Customer | None = None,
        payment_status: PaymentStatus = PaymentStatus.PAID,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        transaction_date: datetime | None = None,
    ) -> Sale:
        items = [
            SaleItem(
                product_id=product.id,
                quantity=Decimal(quantity),
                unit_price=Decimal(unit_price),
                subtotal=Decimal(quantity) * Decimal(unit_price),
            )
            for product, quantity, unit_price in lines
        ]
        sale = Sale(
            customer_id=customer.id if customer else None,
            total_amount=sum((item.subtotal for item in items), Decimal("0")),
            payment_method=payment_method,
            payment_status=payment_status,
            transaction_date=transaction_date or datetime.utcnow(),
            items=items,
        )
        db_session.add(sale)
        db_session.commit()
        db_session.refresh(sale)
        return sale

    return _make
