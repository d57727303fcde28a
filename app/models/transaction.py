import enum
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.product_category import generate_custom_id, utcnow


class TransactionType(str, enum.Enum):
    sales = "sales"
    purchases = "purchases"
    return_sales = "return_sales"
    return_purchases = "return_purchases"
    deposit_suppliers = "deposit_suppliers"
    deposit_customers = "deposit_customers"


# Stock sign rules: these types add to a product's quantity ...
STOCK_IN_TYPES = (TransactionType.purchases, TransactionType.return_sales)
# ... and these subtract from it. Deposits never move stock.
STOCK_OUT_TYPES = (TransactionType.sales, TransactionType.return_purchases)

# Balance sign rule: returns count negatively against a partner, everything else positively.
RETURN_TYPES = (TransactionType.return_sales, TransactionType.return_purchases)

RETURN_TYPE_FOR = {
    TransactionType.sales: TransactionType.return_sales,
    TransactionType.purchases: TransactionType.return_purchases,
}

PARTNER_REQUIRED_TYPES = (
    TransactionType.purchases,
    TransactionType.deposit_suppliers,
    TransactionType.deposit_customers,
)

PRODUCT_REQUIRED_TYPES = (TransactionType.sales, TransactionType.purchases)

# Types whose entries must keep paid <= balance.
PAYMENT_BOUND_TYPES = (TransactionType.sales, TransactionType.purchases)


class Transaction(Base):
    """A ledger entry. Core fields never change after creation except balance/paid/left/note."""
    __tablename__ = "transactions"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("TXN"))
    serial_number = Column(String(30), unique=True, nullable=False, index=True)

    partner_id = Column(String(20), ForeignKey("partners.id"), nullable=True)
    transaction_type = Column(Enum(TransactionType), nullable=False, index=True)

    balance = Column(Numeric(15, 2), nullable=False, default=0)
    paid = Column(Numeric(15, 2), nullable=False, default=0)
    left = Column(Numeric(15, 2), nullable=False, default=0)
    note = Column(String(500), nullable=True)

    original_transaction_id = Column(
        String(20), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    partner = relationship("Partner", back_populates="transactions")
    items = relationship(
        "TransactionItem",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionItem.id",
    )
    original_transaction = relationship(
        "Transaction", remote_side=[id], back_populates="returns")
    returns = relationship("Transaction", back_populates="original_transaction")

    __table_args__ = (
        Index("ix_transactions_partner_created", "partner_id", "created_at"),
    )

    def __repr__(self):
        return f"<Transaction(id='{self.id}', serial='{self.serial_number}', type='{self.transaction_type}')>"


class TransactionItem(Base):
    """One product line of a ledger entry, with prices snapshotted at write time."""
    __tablename__ = "transaction_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(20), ForeignKey(
        "transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(20), ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)
    selling_price = Column(Numeric(15, 2), nullable=False, default=0)

    transaction = relationship("Transaction", back_populates="items")
    product = relationship("Product", back_populates="ledger_lines")
