from sqlalchemy import Column, Date, DateTime, Numeric, String, func

from app.core.database import Base
from app.models.product_category import generate_custom_id, utcnow


class Expense(Base):
    """Expense entry: title, amount, free-text category (defaults to General); date defaults to today."""
    __tablename__ = "expenses"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("EXP"))
    title = Column(String(200), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    category = Column(String(100), nullable=False, default="General", index=True)
    date = Column(Date, nullable=False, server_default=func.current_date(), index=True)
    note = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
