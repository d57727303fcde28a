from sqlalchemy import Column, DateTime, Enum, String

from app.core.database import Base
from app.models.product_category import EntityStatus, generate_custom_id, utcnow


class Unit(Base):
    __tablename__ = "units"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("UNT"))
    name = Column(String(50), unique=True, nullable=False)
    abbreviation = Column(String(10), unique=True, nullable=False)
    description = Column(String(200), nullable=True)
    status = Column(Enum(EntityStatus), nullable=False, default=EntityStatus.Active, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
