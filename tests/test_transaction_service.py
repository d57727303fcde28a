import re
from decimal import Decimal

import pytest

from app.common.exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from app.models.transaction import Transaction, TransactionType
from app.schemas.transaction import ReturnCreate, SalesTransactionCreate, TransactionUpdate
from app.services import transaction_service
from app.services.return_service import ReturnService
from app.services.stock_service import StockService


def count_of(db, transaction_type):
    return db.query(Transaction).filter(Transaction.transaction_type == transaction_type).count()


def test_purchase_then_sale_of_everything_leaves_zero_stock(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 5)], balance="50")
    ledger.sale([(product, 5)], balance="75")

    assert StockService(db).compute_stock_quantity(product.id) == 0


def test_insufficient_stock_reports_shortage_and_persists_nothing(db, make_product, make_partner, ledger):
    product = make_product(name="Cola")
    ledger.purchase(make_partner(), [(product, 3)], balance="30")

    with pytest.raises(InsufficientStockError) as exc:
        ledger.sale([(product, 5)], balance="75")

    assert exc.value.status_code == 400
    assert exc.value.details == [{
        "product_id": product.id,
        "name": "Cola",
        "sku": product.sku,
        "current_quantity": 3,
        "requested_quantity": 5,
        "shortage": 2,
    }]
    assert count_of(db, TransactionType.sales) == 0
    assert StockService(db).compute_stock_quantity(product.id) == 3


def test_stock_check_aggregates_repeated_lines_of_a_product(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 4)], balance="40")

    with pytest.raises(InsufficientStockError) as exc:
        ledger.sale([(product, 3), (product, 2)], balance="75")

    assert exc.value.details[0]["requested_quantity"] == 5
    assert exc.value.details[0]["shortage"] == 1


def test_missing_products_are_listed(db, make_product, ledger):
    product = make_product()

    with pytest.raises(NotFoundError) as exc:
        ledger.service.create_transaction(SalesTransactionCreate(
            transaction_type="sales",
            items=[
                {"product_id": product.id, "quantity": 1},
                {"product_id": "PRD-NOPE", "quantity": 1},
            ],
            balance="10",
        ))

    assert exc.value.details == {"missing_product_ids": ["PRD-NOPE"]}


def test_unknown_partner_is_not_found(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 5)], balance="50")

    with pytest.raises(NotFoundError):
        ledger.service.create_transaction(SalesTransactionCreate(
            transaction_type="sales",
            partner_id="PTN-GHOST",
            items=[{"product_id": product.id, "quantity": 1}],
            balance="15",
        ))


def test_paid_above_balance_is_rejected_on_create(db, make_product, make_partner, ledger):
    supplier = make_partner()

    with pytest.raises(ValidationError):
        ledger.purchase(supplier, [(make_product(), 1)], balance="10", paid="10.01")

    assert count_of(db, TransactionType.purchases) == 0


def test_deposits_are_not_bound_by_balance(db, make_partner, ledger):
    supplier = make_partner()

    deposit = ledger.deposit(supplier, paid="500")

    assert Decimal(deposit.balance) == Decimal("0")
    assert Decimal(deposit.left) == Decimal("-500")


def test_created_entry_snapshots_catalog_prices_and_serial(db, make_product, make_partner, ledger):
    product = make_product(selling_price="15.00", cost_price="10.00")
    supplier = make_partner()

    purchase = ledger.purchase(supplier, [(product, 2)], balance="20", paid="5")

    assert re.fullmatch(r"TRX-\d{8}-[A-Z0-9]{6}", purchase.serial_number)
    assert Decimal(purchase.left) == Decimal("15")
    line = purchase.items[0]
    assert (Decimal(line.cost_price), Decimal(line.selling_price)) == (Decimal("10"), Decimal("15"))

    # Later catalog changes do not touch recorded lines
    product.cost_price = Decimal("99.00")
    db.commit()
    db.refresh(purchase)
    assert Decimal(purchase.items[0].cost_price) == Decimal("10")


def test_serial_generation_gives_up_after_bounded_attempts(db, make_product, make_partner, ledger, monkeypatch):
    monkeypatch.setattr(transaction_service, "generate_serial_number", lambda now=None: "TRX-20240101-AAAAAA")
    supplier = make_partner()
    product = make_product()
    ledger.purchase(supplier, [(product, 1)], balance="10")

    with pytest.raises(ConflictError):
        ledger.purchase(supplier, [(product, 1)], balance="10")

    assert count_of(db, TransactionType.purchases) == 1


def test_update_recomputes_left_and_partner(db, make_product, make_partner, ledger):
    supplier = make_partner()
    purchase = ledger.purchase(supplier, [(make_product(), 10)], balance="100", paid="20")

    updated = ledger.service.update_transaction(purchase.id, TransactionUpdate(paid=Decimal("70"), note="settled"))
    db.refresh(supplier)

    assert Decimal(updated.left) == Decimal("30")
    assert updated.note == "settled"
    assert (Decimal(supplier.paid), Decimal(supplier.left)) == (Decimal("70"), Decimal("30"))


def test_update_rejects_paid_above_balance_without_mutation(db, make_product, make_partner, ledger):
    supplier = make_partner()
    purchase = ledger.purchase(supplier, [(make_product(), 10)], balance="100", paid="20")

    with pytest.raises(ValidationError):
        ledger.service.update_transaction(purchase.id, TransactionUpdate(balance=Decimal("10")))

    db.expire_all()
    stored = db.get(Transaction, purchase.id)
    assert (Decimal(stored.balance), Decimal(stored.paid)) == (Decimal("100"), Decimal("20"))


def test_update_of_deposit_note_is_allowed(db, make_partner, ledger):
    deposit = ledger.deposit(make_partner(), paid="300")

    updated = ledger.service.update_transaction(deposit.id, TransactionUpdate(note="cash at counter"))

    assert updated.note == "cash at counter"


def test_update_unknown_transaction(db, ledger):
    with pytest.raises(NotFoundError):
        ledger.service.update_transaction("TXN-MISSING", TransactionUpdate(note="x"))


def test_bulk_delete_recalculates_each_partner_once(db, make_product, make_partner, ledger, monkeypatch):
    supplier = make_partner()
    product = make_product()
    entries = [ledger.purchase(supplier, [(product, 1)], balance="10", paid="5") for _ in range(3)]

    calls = []
    original = transaction_service.recalculate_partner_balance

    def counting(session, partner_id):
        calls.append(partner_id)
        return original(session, partner_id)

    monkeypatch.setattr(transaction_service, "recalculate_partner_balance", counting)

    result = ledger.service.bulk_delete_transactions([e.id for e in entries] + ["TXN-MISSING"])
    db.refresh(supplier)

    assert result == {"deleted_count": 3, "requested_count": 4}
    assert calls == [supplier.id]
    assert (Decimal(supplier.balance), Decimal(supplier.paid), Decimal(supplier.left)) == (0, 0, 0)
    assert StockService(db).compute_stock_quantity(product.id) == 0


def test_deleting_original_keeps_its_returns(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 5)], balance="50")
    sale = ledger.sale([(product, 2)], balance="30")
    return_entry = ReturnService(db).return_products(
        sale.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 1}]))

    ledger.service.delete_transaction(sale.id)

    db.expire_all()
    survivor = db.get(Transaction, return_entry.id)
    assert survivor is not None
    assert survivor.original_transaction_id is None


def test_get_transaction_falls_back_to_serial(db, make_partner, ledger):
    deposit = ledger.deposit(make_partner(), paid="10")

    assert ledger.service.get_transaction(deposit.serial_number).id == deposit.id
    assert ledger.service.get_transaction("TRX-00000000-XXXXXX") is None


def test_stats_and_partner_totals(db, make_product, make_partner, ledger):
    supplier = make_partner()
    product = make_product()
    purchase = ledger.purchase(supplier, [(product, 10)], balance="100", paid="100")
    ledger.sale([(product, 3)], balance="45")
    ledger.sale([(product, 2)], balance="30")
    ReturnService(db).return_products(purchase.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 4}]))

    stats = ledger.service.get_transaction_stats()
    assert stats == {
        "sales": {"total_quantity": 5, "count": 2},
        "purchases": {"total_quantity": 10, "count": 1},
        "return_sales": {"total_quantity": 0, "count": 0},
        "return_purchases": {"total_quantity": 4, "count": 1},
    }

    partner, rows, total, totals = ledger.service.get_partner_transactions(supplier.id)
    assert partner.id == supplier.id
    assert total == 2
    assert totals == {"balance": Decimal("60.00"), "paid": Decimal("100.00"), "left": Decimal("-40.00")}

    with pytest.raises(NotFoundError):
        ledger.service.get_partner_transactions("PTN-MISSING")
