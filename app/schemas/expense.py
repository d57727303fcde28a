from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class ExpenseCreate(BaseModel):
    """Single expense create - date defaults to today on server if not provided."""
    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    category: str = Field("General", min_length=1, max_length=100)
    date: Optional[DateType] = None  # default to today in service
    note: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Shop rent",
                "amount": 25000,
                "category": "Rent",
                "date": "2024-05-01",
                "note": "May rent"
            }
        }


class ExpenseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[DateType] = None
    note: Optional[str] = Field(None, max_length=500)


class ExpenseResponse(BaseModel):
    id: str
    title: str
    amount: Decimal
    category: str
    date: DateType
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseCategoryTotal(BaseModel):
    category: str
    total_amount: Decimal
    count: int


class ExpenseStatsResponse(BaseModel):
    total_amount: Decimal
    count: int
    by_category: List[ExpenseCategoryTotal]
