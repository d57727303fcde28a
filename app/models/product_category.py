import enum
import secrets
import string
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship
from app.core.database import Base


class EntityStatus(str, enum.Enum):
    Active = "Active"
    Inactive = "Inactive"


def generate_custom_id(prefix: str, length: int = 8) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("CAT"))
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    status = Column(Enum(EntityStatus), nullable=False,
                    default=EntityStatus.Active, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True),
                        default=utcnow, onupdate=utcnow)

    products = relationship("Product", back_populates="category")


class Product(Base):
    """
    Catalog entry. Stock quantity is not stored here: it is folded from
    the transaction ledger on read (see app/services/stock_service.py).
    """
    __tablename__ = "products"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("PRD"))
    sku = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    selling_price = Column(Numeric(15, 2), nullable=False, default=0)
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)

    category_id = Column(String(20), ForeignKey(
        "categories.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True),
                        default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products")
    ledger_lines = relationship("TransactionItem", back_populates="product")

    def __repr__(self):
        return f"<Product(id='{self.id}', sku='{self.sku}')>"
