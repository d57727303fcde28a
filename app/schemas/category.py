from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.product_category import EntityStatus


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: EntityStatus = EntityStatus.Active


class CategoryCreate(CategoryBase):
    class Config:
        json_schema_extra = {
            "example": {
                "name": "Beverages",
                "description": "Soft drinks and juices",
                "status": "Active"
            }
        }


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[EntityStatus] = None


class CategoryResponse(CategoryBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
