"""Shared pytest fixtures: in-memory SQLite schema per test, a session, a client and small factories."""

import os

# Settings are read at import time, so the test database must be configured first
os.environ.setdefault("APP_ENV", "test")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.partner import PartnerType  # noqa: E402
from app.schemas.transaction import (  # noqa: E402
    DepositTransactionCreate,
    PurchasesTransactionCreate,
    SalesTransactionCreate,
)
from app.services.category_service import create_category  # noqa: E402
from app.services.partner_service import create_partner  # noqa: E402
from app.services.product_service import create_product  # noqa: E402
from app.services.transaction_service import TransactionService  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def category(db):
    return create_category(db, name="Beverages")


@pytest.fixture
def make_product(db, category):
    counter = {"n": 0}

    def _make(name=None, selling_price="15.00", cost_price="10.00"):
        counter["n"] += 1
        return create_product(
            db,
            sku=f"sku-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            category_id=category.id,
            selling_price=Decimal(selling_price),
            cost_price=Decimal(cost_price),
        )

    return _make


@pytest.fixture
def make_partner(db):
    def _make(name="Acme Traders", type=PartnerType.Supplier):
        return create_partner(db, name=name, phone_number="03001234567", type=type)

    return _make


@pytest.fixture
def ledger(db):
    """Shortcuts for writing ledger entries through the transaction service."""

    class Ledger:
        def __init__(self):
            self.service = TransactionService(db)

        def purchase(self, partner, lines, balance, paid="0"):
            return self.service.create_transaction(PurchasesTransactionCreate(
                transaction_type="purchases",
                partner_id=partner.id,
                items=[{"product_id": p.id, "quantity": q} for p, q in lines],
                balance=Decimal(balance),
                paid=Decimal(paid),
            ))

        def sale(self, lines, balance, paid="0", partner=None):
            return self.service.create_transaction(SalesTransactionCreate(
                transaction_type="sales",
                partner_id=partner.id if partner else None,
                items=[{"product_id": p.id, "quantity": q} for p, q in lines],
                balance=Decimal(balance),
                paid=Decimal(paid),
            ))

        def deposit(self, partner, paid, transaction_type="deposit_suppliers", balance=None):
            return self.service.create_transaction(DepositTransactionCreate(
                transaction_type=transaction_type,
                partner_id=partner.id,
                balance=Decimal(balance) if balance is not None else None,
                paid=Decimal(paid),
            ))

    return Ledger()
