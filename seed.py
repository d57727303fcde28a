from app.core.database import Base, SessionLocal, engine
from app.models import Category, Expense, Partner, PartnerType, Product, Transaction, Unit, Warehouse
from app.schemas.transaction import (
    DepositTransactionCreate,
    PurchasesTransactionCreate,
    ReturnCreate,
    SalesTransactionCreate,
)
from app.services.category_service import create_category
from app.services.expense_service import create_expense
from app.services.partner_service import create_partner
from app.services.product_service import create_product
from app.services.return_service import ReturnService
from app.services.stock_service import StockService
from app.services.transaction_service import TransactionService
from app.services.unit_service import create_unit
from app.services.warehouse_service import create_warehouse

from faker import Faker
from decimal import Decimal
import random

fake = Faker()

UNITS = [("Piece", "pcs"), ("Kilogram", "kg"), ("Litre", "l"), ("Box", "box")]
EXPENSE_CATEGORIES = ["Rent", "Utilities", "Salaries", "Transport", "General"]


def money(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def line_total(lines, price_field: str, products) -> Decimal:
    return sum(
        (getattr(products[line["product_id"]], price_field) * line["quantity"] for line in lines),
        Decimal("0.00"),
    )


Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    print("🔄 Clearing existing data...")
    db.query(Transaction).delete()
    for model in (Product, Category, Partner, Unit, Warehouse, Expense):
        db.query(model).delete()
    db.commit()
    print("✅ Data cleared.")

    print("🔄 Creating units, warehouses and categories...")
    for name, abbreviation in UNITS:
        create_unit(db, name=name, abbreviation=abbreviation)
    for _ in range(3):
        create_warehouse(db, title=f"{fake.city()} Store", location=fake.address().replace('\n', ', '),
                         manager=fake.name())
    categories = [create_category(db, name=name) for name in ("Beverages", "Snacks", "Household", "Stationery")]
    print(f"✅ Seeded {len(UNITS)} units, 3 warehouses, {len(categories)} categories")

    print("🔄 Creating products...")
    products = {}
    for i in range(20):
        cost = money(20, 100)
        product = create_product(
            db,
            sku=f"{fake.lexify('???').upper()}-{i:03d}",
            name=fake.word().capitalize(),
            category_id=random.choice(categories).id,
            selling_price=(cost * Decimal("1.25")).quantize(Decimal("0.01")),
            cost_price=cost,
        )
        products[product.id] = product
    print(f"✅ Seeded {len(products)} products")

    print("🔄 Creating suppliers and customers...")
    suppliers = [
        create_partner(db, name=fake.company(), phone_number=fake.msisdn()[:11], type=PartnerType.Supplier)
        for _ in range(8)
    ]
    customers = [
        create_partner(db, name=fake.name(), phone_number=fake.msisdn()[:11], type=PartnerType.Customer)
        for _ in range(12)
    ]
    print(f"✅ Seeded {len(suppliers)} suppliers and {len(customers)} customers")

    ledger = TransactionService(db)

    print("🔄 Creating purchases...")
    purchases = []
    for _ in range(15):
        lines = [
            {"product_id": product_id, "quantity": random.randint(10, 50)}
            for product_id in random.sample(list(products), k=random.randint(1, 4))
        ]
        balance = line_total(lines, "cost_price", products)
        purchases.append(ledger.create_transaction(PurchasesTransactionCreate(
            transaction_type="purchases",
            partner_id=random.choice(suppliers).id,
            items=lines,
            balance=balance,
            paid=(balance * Decimal(str(random.choice([0, 0.5, 1])))).quantize(Decimal("0.01")),
        )))
    print(f"✅ Seeded {len(purchases)} purchases")

    print("🔄 Creating sales against available stock...")
    sales = []
    for _ in range(25):
        stock = StockService(db).compute_stock_quantities(products.keys())
        available = [product_id for product_id, quantity in stock.items() if quantity > 0]
        if not available:
            break
        lines = [
            {"product_id": product_id, "quantity": random.randint(1, min(5, stock[product_id]))}
            for product_id in random.sample(available, k=min(len(available), random.randint(1, 3)))
        ]
        balance = line_total(lines, "selling_price", products)
        sales.append(ledger.create_transaction(SalesTransactionCreate(
            transaction_type="sales",
            partner_id=random.choice(customers).id if random.random() < 0.8 else None,
            items=lines,
            balance=balance,
            paid=(balance * Decimal(str(random.choice([0, 0.5, 1])))).quantize(Decimal("0.01")),
        )))
    print(f"✅ Seeded {len(sales)} sales")

    print("🔄 Creating returns and deposits...")
    returns = ReturnService(db)
    for sale in random.sample(sales, k=min(4, len(sales))):
        first_line = sale.items[0]
        returns.return_products(sale.id, ReturnCreate(
            items=[{"product_id": first_line.product_id, "quantity": 1}],
            note=fake.sentence(nb_words=4),
        ))
    for supplier in random.sample(suppliers, k=3):
        ledger.create_transaction(DepositTransactionCreate(
            transaction_type="deposit_suppliers",
            partner_id=supplier.id,
            paid=money(100, 1000),
        ))
    for customer in random.sample(customers, k=3):
        ledger.create_transaction(DepositTransactionCreate(
            transaction_type="deposit_customers",
            partner_id=customer.id,
            paid=money(100, 1000),
        ))
    print("✅ Seeded returns and deposits")

    print("🔄 Creating expenses...")
    for _ in range(20):
        create_expense(
            db,
            title=fake.sentence(nb_words=3).rstrip('.'),
            amount=money(500, 20000),
            category=random.choice(EXPENSE_CATEGORIES),
            expense_date=fake.date_between(start_date="-60d", end_date="today"),
        )
    print("✅ Seeded 20 expenses")

    print("🎉 Database seeded successfully!")

except Exception as e:
    db.rollback()
    print(f"❌ Error seeding data: {e}")
    raise

finally:
    db.close()
