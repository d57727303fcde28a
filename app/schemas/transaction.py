"""
Transaction Module Schemas
Request validation for ledger entries (one create schema per transaction type)
and the response shapes used by the transaction and return routes.
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.partner import PartnerType
from app.models.transaction import TransactionType


def check_two_decimals(v: Optional[Decimal], label: str) -> Optional[Decimal]:
    if v is not None and v.as_tuple().exponent < -2:
        raise ValueError(f"{label} must have at most 2 decimal places")
    return v


# ============================================================================
# Request Schemas - Create
# ============================================================================

class TransactionItemCreate(BaseModel):
    """One product line. Prices default to the product's catalog prices when omitted."""
    product_id: str = Field(..., min_length=1, description="Product ID")
    quantity: int = Field(..., ge=1, description="Quantity (at least 1)")
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "PRD-ABCDEFGH",
                "quantity": 5,
                "selling_price": 120.00
            }
        }


class SalesTransactionCreate(BaseModel):
    transaction_type: Literal["sales"]
    partner_id: Optional[str] = Field(None, description="Customer; walk-in sales may omit it")
    items: List[TransactionItemCreate] = Field(..., min_length=1)
    balance: Decimal = Field(..., ge=0, description="Total amount of the sale")
    paid: Decimal = Field(Decimal("0.00"), ge=0)
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("balance", "paid")
    @classmethod
    def validate_amounts(cls, v, info):
        return check_two_decimals(v, info.field_name.capitalize())

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_type": "sales",
                "partner_id": "PTN-ABCDEFGH",
                "items": [{"product_id": "PRD-ABCDEFGH", "quantity": 2}],
                "balance": 240.00,
                "paid": 100.00
            }
        }


class PurchasesTransactionCreate(BaseModel):
    transaction_type: Literal["purchases"]
    partner_id: str = Field(..., min_length=1, description="Supplier")
    items: List[TransactionItemCreate] = Field(..., min_length=1)
    balance: Decimal = Field(..., ge=0, description="Total amount of the purchase")
    paid: Decimal = Field(Decimal("0.00"), ge=0)
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("balance", "paid")
    @classmethod
    def validate_amounts(cls, v, info):
        return check_two_decimals(v, info.field_name.capitalize())


class DepositTransactionCreate(BaseModel):
    transaction_type: Literal["deposit_suppliers", "deposit_customers"]
    partner_id: str = Field(..., min_length=1)
    items: List[TransactionItemCreate] = Field(default_factory=list)
    balance: Optional[Decimal] = Field(None, ge=0)
    paid: Decimal = Field(Decimal("0.00"), ge=0)
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("balance", "paid")
    @classmethod
    def validate_amounts(cls, v, info):
        return check_two_decimals(v, info.field_name.capitalize())


# Discriminated on transaction_type where it is used as a request body
TransactionCreate = Union[SalesTransactionCreate, PurchasesTransactionCreate, DepositTransactionCreate]


# ============================================================================
# Request Schemas - Update / Return
# ============================================================================

class TransactionUpdate(BaseModel):
    """Only balance, paid and note are mutable on an existing entry."""
    balance: Optional[Decimal] = Field(None, ge=0)
    paid: Optional[Decimal] = Field(None, ge=0)
    note: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_not_empty(self):
        if self.balance is None and self.paid is None and self.note is None:
            raise ValueError("At least one of balance, paid or note must be provided")
        return self


class ReturnItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class ReturnCreate(BaseModel):
    items: List[ReturnItemCreate] = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "items": [{"product_id": "PRD-ABCDEFGH", "quantity": 1}],
                "note": "Damaged on arrival"
            }
        }


# ============================================================================
# Response Schemas
# ============================================================================

class PartnerRef(BaseModel):
    id: str
    name: str
    type: PartnerType

    class Config:
        from_attributes = True


class TransactionItemResponse(BaseModel):
    product_id: str
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: int
    cost_price: Decimal
    selling_price: Decimal
    price: Decimal
    total: Decimal


class TransactionResponse(BaseModel):
    id: str
    serial_number: str
    transaction_type: TransactionType
    partner_id: Optional[str] = None
    partner: Optional[PartnerRef] = None
    items: List[TransactionItemResponse]
    balance: Decimal
    paid: Decimal
    left: Decimal
    note: Optional[str] = None
    original_transaction_id: Optional[str] = None
    created_at: datetime


class TransactionListItem(TransactionResponse):
    total_quantity: int
    product_display: Optional[str] = None


class TypeStats(BaseModel):
    total_quantity: int = 0
    count: int = 0


class TransactionStatsResponse(BaseModel):
    sales: TypeStats
    purchases: TypeStats
    return_sales: TypeStats
    return_purchases: TypeStats


class PartnerTotals(BaseModel):
    balance: Decimal
    paid: Decimal
    left: Decimal


class PartnerTransactionsResponse(BaseModel):
    partner: PartnerRef
    transactions: List[TransactionListItem]
    totals: PartnerTotals


class ReturnSummaryLine(BaseModel):
    product_id: str
    name: Optional[str] = None
    original_quantity: int
    returned_quantity: int
    remaining_quantity: int


class ReturnSummaryResponse(BaseModel):
    original_transaction_id: str
    serial_number: str
    transaction_type: TransactionType
    return_count: int
    items: List[ReturnSummaryLine]

