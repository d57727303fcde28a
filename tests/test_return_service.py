from decimal import Decimal

import pytest

from app.common.exceptions import InsufficientStockError, NotFoundError, ValidationError
from app.models.partner import PartnerType
from app.models.transaction import Transaction, TransactionType
from app.schemas.transaction import ReturnCreate
from app.services.return_service import ReturnService
from app.services.stock_service import StockService


def returning(*lines, note=None):
    return ReturnCreate(items=[{"product_id": p.id, "quantity": q} for p, q in lines], note=note)


@pytest.fixture
def stocked_sale(db, make_product, make_partner, ledger):
    """A sale of 10 units at selling price 15 to a customer."""
    product = make_product(selling_price="15.00", cost_price="10.00")
    customer = make_partner(name="Retail Buyer", type=PartnerType.Customer)
    ledger.purchase(make_partner(), [(product, 20)], balance="200")
    sale = ledger.sale([(product, 10)], balance="150", paid="150", partner=customer)
    return sale, product, customer


def test_partial_returns_are_bounded_by_remaining_quantity(db, stocked_sale):
    sale, product, _ = stocked_sale
    service = ReturnService(db)

    first = service.return_products(sale.id, returning((product, 6)))
    assert first.transaction_type == TransactionType.return_sales

    with pytest.raises(ValidationError) as exc:
        service.return_products(sale.id, returning((product, 5)))

    assert "remaining: 4" in exc.value.message
    assert exc.value.details["original_quantity"] == 10
    assert exc.value.details["already_returned"] == 6
    assert exc.value.details["remaining_quantity"] == 4
    assert db.query(Transaction).filter(Transaction.original_transaction_id == sale.id).count() == 1


def test_lines_of_one_request_count_towards_the_bound(db, stocked_sale):
    sale, product, _ = stocked_sale

    with pytest.raises(ValidationError):
        ReturnService(db).return_products(sale.id, returning((product, 6), (product, 5)))

    assert db.query(Transaction).filter(Transaction.original_transaction_id == sale.id).count() == 0


def test_sales_return_is_valued_at_selling_price(db, stocked_sale):
    sale, product, customer = stocked_sale

    entry = ReturnService(db).return_products(sale.id, returning((product, 2)))
    db.refresh(customer)

    assert Decimal(entry.balance) == Decimal("30")
    assert Decimal(entry.paid) == Decimal("0")
    assert Decimal(entry.left) == Decimal("30")
    assert entry.partner_id == customer.id
    assert entry.original_transaction_id == sale.id
    assert entry.note == f"Return for transaction {sale.serial_number}"
    assert Decimal(entry.items[0].selling_price) == Decimal("15")
    # Customer: 150 - 30 balance, 150 paid
    assert (Decimal(customer.balance), Decimal(customer.left)) == (Decimal("120"), Decimal("-30"))
    assert StockService(db).compute_stock_quantity(product.id) == 12


def test_purchase_return_is_valued_at_cost_price(db, make_product, make_partner, ledger):
    product = make_product(selling_price="15.00", cost_price="10.00")
    supplier = make_partner()
    purchase = ledger.purchase(supplier, [(product, 8)], balance="80")

    entry = ReturnService(db).return_products(purchase.id, returning((product, 3), note="Damaged"))
    db.refresh(supplier)

    assert entry.transaction_type == TransactionType.return_purchases
    assert Decimal(entry.balance) == Decimal("30")
    assert entry.note == "Damaged"
    assert Decimal(supplier.balance) == Decimal("50")
    assert StockService(db).compute_stock_quantity(product.id) == 5


def test_return_prices_come_from_the_original_line(db, stocked_sale):
    sale, product, _ = stocked_sale
    product.selling_price = Decimal("99.00")
    db.commit()

    entry = ReturnService(db).return_products(sale.id, returning((product, 1)))

    assert Decimal(entry.balance) == Decimal("15")


def test_product_not_in_original_is_rejected(db, stocked_sale, make_product):
    sale, _, _ = stocked_sale
    other = make_product()

    with pytest.raises(ValidationError):
        ReturnService(db).return_products(sale.id, returning((other, 1)))


def test_only_sales_and_purchases_can_be_returned(db, make_partner, make_product, ledger):
    deposit = ledger.deposit(make_partner(), paid="50")

    with pytest.raises(ValidationError):
        ReturnService(db).return_products(deposit.id, returning((make_product(), 1)))


def test_returns_of_returns_are_rejected(db, stocked_sale):
    sale, product, _ = stocked_sale
    entry = ReturnService(db).return_products(sale.id, returning((product, 1)))

    with pytest.raises(ValidationError):
        ReturnService(db).return_products(entry.id, returning((product, 1)))


def test_unknown_original_is_not_found(db, make_product):
    with pytest.raises(NotFoundError):
        ReturnService(db).return_products("TXN-MISSING", returning((make_product(), 1)))


def test_return_summary_tracks_remaining_quantities(db, stocked_sale):
    sale, product, _ = stocked_sale
    service = ReturnService(db)
    service.return_products(sale.id, returning((product, 3)))
    service.return_products(sale.id, returning((product, 2)))

    summary = service.get_return_summary(sale.id)

    assert summary["return_count"] == 2
    assert summary["items"] == [{
        "product_id": product.id,
        "name": product.name,
        "original_quantity": 10,
        "returned_quantity": 5,
        "remaining_quantity": 5,
    }]


def test_purchase_return_cannot_take_stock_below_zero(db, make_product, make_partner, ledger):
    product = make_product(cost_price="10.00")
    supplier = make_partner()
    purchase = ledger.purchase(supplier, [(product, 5)], balance="50")
    ledger.sale([(product, 5)], balance="75")

    with pytest.raises(InsufficientStockError) as exc:
        ReturnService(db).return_products(purchase.id, returning((product, 5)))

    assert exc.value.details == [{
        "product_id": product.id,
        "name": product.name,
        "sku": product.sku,
        "current_quantity": 0,
        "requested_quantity": 5,
        "shortage": 5,
    }]
    assert db.query(Transaction).filter(Transaction.original_transaction_id == purchase.id).count() == 0
    assert StockService(db).compute_stock_quantity(product.id) == 0
    db.refresh(supplier)
    assert Decimal(supplier.balance) == Decimal("50")


def test_purchase_return_within_remaining_stock_succeeds(db, make_product, make_partner, ledger):
    product = make_product(cost_price="10.00")
    purchase = ledger.purchase(make_partner(), [(product, 5)], balance="50")
    ledger.sale([(product, 3)], balance="45")

    entry = ReturnService(db).return_products(purchase.id, returning((product, 2)))

    assert Decimal(entry.balance) == Decimal("20")
    assert StockService(db).compute_stock_quantity(product.id) == 0


def test_returns_accept_the_original_serial_number(db, stocked_sale):
    sale, product, _ = stocked_sale
    service = ReturnService(db)

    entry = service.return_products(sale.serial_number, returning((product, 4)))

    assert entry.original_transaction_id == sale.id
    assert service.get_return_summary(sale.serial_number)["items"][0]["remaining_quantity"] == 6
