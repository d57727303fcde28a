from sqlalchemy import Column, DateTime, Enum, String

from app.core.database import Base
from app.models.product_category import EntityStatus, generate_custom_id, utcnow


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("WHS"))
    title = Column(String(100), unique=True, nullable=False)
    location = Column(String(200), nullable=False)
    manager = Column(String(100), nullable=True)
    status = Column(Enum(EntityStatus), nullable=False, default=EntityStatus.Active, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
