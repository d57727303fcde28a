from decimal import Decimal

from app.models.partner import PartnerType
from app.schemas.transaction import ReturnCreate
from app.services.partner_balance import PartnerBalanceService, recalculate_partner_balance
from app.services.partner_service import get_all_partners
from app.services.return_service import ReturnService


def totals_of(partner):
    return (Decimal(partner.balance), Decimal(partner.paid), Decimal(partner.left))


def test_new_partner_starts_at_zero(db, make_partner):
    partner = make_partner()

    assert totals_of(partner) == (Decimal("0"), Decimal("0"), Decimal("0"))


def test_purchase_and_deposit_fold_into_partner(db, make_product, make_partner, ledger):
    supplier = make_partner()
    product = make_product()

    ledger.purchase(supplier, [(product, 10)], balance="100", paid="40")
    db.refresh(supplier)
    assert totals_of(supplier) == (Decimal("100"), Decimal("40"), Decimal("60"))

    # Deposit without balance counts as 0 balance
    ledger.deposit(supplier, paid="30")
    db.refresh(supplier)
    assert totals_of(supplier) == (Decimal("100"), Decimal("70"), Decimal("30"))


def test_returns_count_against_the_partner(db, make_product, make_partner, ledger):
    supplier = make_partner()
    product = make_product(cost_price="10.00")
    purchase = ledger.purchase(supplier, [(product, 10)], balance="100", paid="50")

    ReturnService(db).return_products(purchase.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 2}]))
    db.refresh(supplier)

    # balance 100 - 20, paid unchanged because the return carries paid = 0
    assert totals_of(supplier) == (Decimal("80"), Decimal("50"), Decimal("30"))


def test_left_is_balance_minus_paid_after_mixed_history(db, make_product, make_partner, ledger):
    customer = make_partner(name="Walk-in Co", type=PartnerType.Customer)
    supplier = make_partner()
    product = make_product(selling_price="25.00")
    ledger.purchase(supplier, [(product, 20)], balance="200")

    sale = ledger.sale([(product, 4)], balance="100", paid="60", partner=customer)
    ledger.deposit(customer, paid="15.50", transaction_type="deposit_customers", balance="5")
    ReturnService(db).return_products(sale.id, ReturnCreate(items=[{"product_id": product.id, "quantity": 1}]))

    partner = recalculate_partner_balance(db, customer.id)
    db.commit()

    assert Decimal(partner.balance) == Decimal("80.00")
    assert Decimal(partner.paid) == Decimal("75.50")
    assert Decimal(partner.left) == Decimal(partner.balance) - Decimal(partner.paid)


def test_recalculate_is_idempotent(db, make_product, make_partner, ledger):
    supplier = make_partner()
    ledger.purchase(supplier, [(make_product(), 3)], balance="45.75", paid="10.25")
    service = PartnerBalanceService(db)

    first = totals_of(service.recalculate(supplier.id))
    second = totals_of(service.recalculate(supplier.id))

    assert first == second == (Decimal("45.75"), Decimal("10.25"), Decimal("35.50"))


def test_recalculate_without_partner_is_a_no_op(db):
    assert recalculate_partner_balance(db, None) is None
    assert recalculate_partner_balance(db, "") is None
    assert recalculate_partner_balance(db, "PTN-MISSING") is None


def test_compute_totals_does_not_persist(db, make_product, make_partner, ledger):
    supplier = make_partner()
    ledger.purchase(supplier, [(make_product(), 1)], balance="10")

    # Knock the cache out of sync by hand; compute_totals must not repair it
    supplier.balance = Decimal("999")
    db.commit()

    totals = PartnerBalanceService(db).compute_totals(supplier.id)
    db.refresh(supplier)

    assert totals == {"balance": Decimal("10.00"), "paid": Decimal("0.00"), "left": Decimal("10.00")}
    assert Decimal(supplier.balance) == Decimal("999")


def test_recalculate_many_matches_single_recalculation(db, make_product, make_partner, ledger):
    supplier = make_partner()
    customer = make_partner(name="Retail Buyer", type=PartnerType.Customer)
    idle = make_partner(name="Idle Partner")
    product = make_product()
    ledger.purchase(supplier, [(product, 10)], balance="100", paid="40")
    ledger.sale([(product, 2)], balance="30", paid="10", partner=customer)

    for partner in (supplier, customer, idle):
        partner.balance = partner.paid = partner.left = Decimal("999")
    db.commit()

    PartnerBalanceService(db).recalculate_many([supplier, customer, idle])

    assert totals_of(supplier) == (Decimal("100"), Decimal("40"), Decimal("60"))
    assert totals_of(customer) == (Decimal("30"), Decimal("10"), Decimal("20"))
    assert totals_of(idle) == (Decimal("0"), Decimal("0"), Decimal("0"))
    assert totals_of(supplier) == totals_of(recalculate_partner_balance(db, supplier.id))


def test_partner_listing_refreshes_the_page_in_one_pass(db, make_product, make_partner, ledger, monkeypatch):
    supplier = make_partner()
    ledger.purchase(supplier, [(make_product(), 4)], balance="40", paid="15")
    supplier.balance = Decimal("0")
    db.commit()

    def per_partner(self, partner_id):
        raise AssertionError("listing should not recalculate partners one by one")

    monkeypatch.setattr(PartnerBalanceService, "recalculate", per_partner)

    partners, total = get_all_partners(db)

    assert total == 1
    assert totals_of(partners[0]) == (Decimal("40"), Decimal("15"), Decimal("25"))
