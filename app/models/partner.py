import enum
from sqlalchemy import Column, DateTime, Enum, Numeric, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.product_category import generate_custom_id, utcnow


class PartnerType(str, enum.Enum):
    Customer = "Customer"
    Supplier = "Supplier"


class Partner(Base):
    __tablename__ = "partners"

    id = Column(String(20), primary_key=True,
                default=lambda: generate_custom_id("PTN"))
    name = Column(String(100), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)
    description = Column(String(500), nullable=True)
    type = Column(Enum(PartnerType), nullable=False)

    # Cache of the ledger fold; only written by PartnerBalanceService.recalculate
    balance = Column(Numeric(15, 2), nullable=False, default=0)
    paid = Column(Numeric(15, 2), nullable=False, default=0)
    left = Column(Numeric(15, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True),
                        default=utcnow, onupdate=utcnow)

    transactions = relationship("Transaction", back_populates="partner")

    def __repr__(self):
        return f"<Partner(id='{self.id}', name='{self.name}', type='{self.type}')>"
