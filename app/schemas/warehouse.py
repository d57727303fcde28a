from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.product_category import EntityStatus


class WarehouseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=200)
    manager: Optional[str] = Field(None, max_length=100)
    status: EntityStatus = EntityStatus.Active


class WarehouseCreate(WarehouseBase):
    class Config:
        json_schema_extra = {
            "example": {
                "title": "Main Store",
                "location": "Lahore",
                "manager": "Ali Raza",
                "status": "Active"
            }
        }


class WarehouseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    manager: Optional[str] = Field(None, max_length=100)
    status: Optional[EntityStatus] = None


class WarehouseResponse(WarehouseBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
