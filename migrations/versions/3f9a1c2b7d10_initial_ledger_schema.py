"""initial ledger schema

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "3f9a1c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "entitystatus": ("Active", "Inactive"),
    "partnertype": ("Customer", "Supplier"),
    "transactiontype": (
        "sales",
        "purchases",
        "return_sales",
        "return_purchases",
        "deposit_suppliers",
        "deposit_customers",
    ),
}


def enum_column(name: str):
    # Types are created once up front; the columns only reference them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("status", enum_column("entitystatus"), nullable=False, server_default="Active"),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_categories_status", "categories", ["status"])

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("selling_price", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("cost_price", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("category_id", sa.String(length=20), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)

    op.create_table(
        "partners",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("type", enum_column("partnertype"), nullable=False),
        sa.Column("balance", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("paid", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("left", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_partners_name", "partners", ["name"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("serial_number", sa.String(length=30), nullable=False),
        sa.Column("partner_id", sa.String(length=20), nullable=True),
        sa.Column("transaction_type", enum_column("transactiontype"), nullable=False),
        sa.Column("balance", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("paid", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("left", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("note", sa.String(length=500), nullable=True),
        sa.Column("original_transaction_id", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"]),
        sa.ForeignKeyConstraint(["original_transaction_id"], ["transactions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_serial_number", "transactions", ["serial_number"], unique=True)
    op.create_index("ix_transactions_transaction_type", "transactions", ["transaction_type"])
    op.create_index("ix_transactions_original_transaction_id", "transactions", ["original_transaction_id"])
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])
    op.create_index("ix_transactions_partner_created", "transactions", ["partner_id", "created_at"])

    op.create_table(
        "transaction_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("transaction_id", sa.String(length=20), nullable=False),
        sa.Column("product_id", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("cost_price", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.Column("selling_price", sa.Numeric(precision=15, scale=2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transaction_items_transaction_id", "transaction_items", ["transaction_id"])
    op.create_index("ix_transaction_items_product_id", "transaction_items", ["product_id"])

    op.create_table(
        "units",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("abbreviation", sa.String(length=10), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=True),
        sa.Column("status", enum_column("entitystatus"), nullable=False, server_default="Active"),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("abbreviation"),
    )
    op.create_index("ix_units_status", "units", ["status"])

    op.create_table(
        "warehouses",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("manager", sa.String(length=100), nullable=True),
        sa.Column("status", enum_column("entitystatus"), nullable=False, server_default="Active"),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title"),
    )
    op.create_index("ix_warehouses_status", "warehouses", ["status"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False, server_default="General"),
        sa.Column("date", sa.Date(), server_default=sa.text("CURRENT_DATE"), nullable=False),
        sa.Column("note", sa.String(length=500), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_expenses_category", "expenses", ["category"])
    op.create_index("ix_expenses_date", "expenses", ["date"])


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("warehouses")
    op.drop_table("units")
    op.drop_table("transaction_items")
    op.drop_table("transactions")
    op.drop_table("partners")
    op.drop_table("products")
    op.drop_table("categories")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        sa.Enum(name=name).drop(bind, checkfirst=True)
