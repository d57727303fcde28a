from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class ProductBase(BaseModel):
    sku: str = Field(..., min_length=1, max_length=64, description="Stock keeping unit, stored upper-case")
    name: str = Field(..., min_length=1, max_length=200)
    category_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    selling_price: Decimal = Field(Decimal("0.00"), ge=0)
    cost_price: Decimal = Field(Decimal("0.00"), ge=0)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError("SKU cannot be blank")
        return v


class ProductCreate(ProductBase):
    class Config:
        json_schema_extra = {
            "example": {
                "sku": "bev-cola-500",
                "name": "Cola 500ml",
                "category_id": "CAT-ABCDEFGH",
                "selling_price": 120.00,
                "cost_price": 95.00
            }
        }


class ProductUpdate(BaseModel):
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    selling_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v):
        if v is None:
            return v
        v = v.strip().upper()
        if not v:
            raise ValueError("SKU cannot be blank")
        return v


class ProductCategoryRef(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: str
    sku: str
    name: str
    category_id: str
    category: Optional[ProductCategoryRef] = None
    description: Optional[str] = None
    selling_price: Decimal
    cost_price: Decimal
    quantity: int = Field(0, description="Derived from the transaction ledger")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockMovementResponse(BaseModel):
    product_id: str
    total_in: int
    total_out: int
    quantity: int
