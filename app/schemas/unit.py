from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.product_category import EntityStatus


class UnitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    abbreviation: str = Field(..., min_length=1, max_length=10)
    description: Optional[str] = Field(None, max_length=200)
    status: EntityStatus = EntityStatus.Active


class UnitCreate(UnitBase):
    class Config:
        json_schema_extra = {
            "example": {
                "name": "Kilogram",
                "abbreviation": "kg",
                "status": "Active"
            }
        }


class UnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    abbreviation: Optional[str] = Field(None, min_length=1, max_length=10)
    description: Optional[str] = Field(None, max_length=200)
    status: Optional[EntityStatus] = None


class UnitResponse(UnitBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
