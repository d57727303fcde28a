from app.schemas.transaction import DepositTransactionCreate, ReturnCreate
from app.services.product_service import get_all_products
from app.services.return_service import ReturnService
from app.services.stock_service import StockService


def test_product_without_ledger_lines_has_zero_stock(db, make_product):
    product = make_product()

    assert StockService(db).compute_stock_quantity(product.id) == 0
    assert StockService(db).compute_stock_quantities([product.id]) == {product.id: 0}


def test_sign_rules_fold_purchases_sales_and_returns(db, make_product, make_partner, ledger):
    product = make_product()
    supplier = make_partner()

    purchase = ledger.purchase(supplier, [(product, 10)], balance="100")
    sale = ledger.sale([(product, 4)], balance="60")
    assert StockService(db).compute_stock_quantity(product.id) == 6

    # return_sales puts stock back, return_purchases takes it out
    ReturnService(db).return_products(sale.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 1}]))
    assert StockService(db).compute_stock_quantity(product.id) == 7

    ReturnService(db).return_products(purchase.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 2}]))
    assert StockService(db).compute_stock_quantity(product.id) == 5


def test_deposit_lines_do_not_move_stock(db, make_product, make_partner, ledger):
    product = make_product()
    supplier = make_partner()
    ledger.purchase(supplier, [(product, 3)], balance="30")

    ledger.service.create_transaction(DepositTransactionCreate(
        transaction_type="deposit_suppliers",
        partner_id=supplier.id,
        items=[{"product_id": product.id, "quantity": 50}],
        paid="10",
    ))

    assert StockService(db).compute_stock_quantity(product.id) == 3


def test_bulk_quantities_agree_with_single_product_calls(db, make_product, make_partner, ledger):
    first, second, untouched = make_product(), make_product(), make_product()
    supplier = make_partner()
    ledger.purchase(supplier, [(first, 8), (second, 5)], balance="130")
    ledger.sale([(first, 3), (second, 5)], balance="120")
    ledger.purchase(supplier, [(first, 1)], balance="10")

    service = StockService(db)
    bulk = service.compute_stock_quantities([first.id, second.id, untouched.id])

    assert bulk == {first.id: 6, second.id: 0, untouched.id: 0}
    for product_id, quantity in bulk.items():
        assert service.compute_stock_quantity(product_id) == quantity


def test_bulk_quantities_edge_cases(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 2)], balance="20")
    service = StockService(db)

    assert service.compute_stock_quantities([]) == {}
    assert service.compute_stock_quantities(["PRD-UNKNOWN"]) == {"PRD-UNKNOWN": 0}
    # Without ids only products that appear in the ledger are returned
    assert service.compute_stock_quantities() == {product.id: 2}


def test_stock_movements_split_in_and_out(db, make_product, make_partner, ledger):
    product = make_product()
    ledger.purchase(make_partner(), [(product, 10)], balance="100")
    ledger.sale([(product, 7)], balance="105")

    movements = StockService(db).get_stock_movements(product.id)

    assert movements == {"product_id": product.id, "total_in": 10, "total_out": 7, "quantity": 3}


def test_product_listing_joins_live_quantity(db, make_product, make_partner, ledger):
    stocked = make_product(name="Cola")
    empty = make_product(name="Juice")
    ledger.purchase(make_partner(), [(stocked, 12)], balance="120")
    ledger.sale([(stocked, 2)], balance="30")

    rows, total = get_all_products(db)
    quantities = {product.id: quantity for product, quantity in rows}

    assert total == 2
    assert quantities == {stocked.id: 10, empty.id: 0}
