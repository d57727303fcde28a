from decimal import Decimal
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.partner import PartnerType

# Derived from the ledger; clients may never send them
CALCULATED_FIELDS = ("balance", "paid", "left")


def reject_calculated_fields(data):
    if isinstance(data, dict):
        for field in CALCULATED_FIELDS:
            if field in data:
                raise ValueError(
                    f"{field.capitalize()} is automatically calculated from transactions "
                    f"and cannot be set manually"
                )
    return data


class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = Field(None, max_length=500)
    type: PartnerType

    @model_validator(mode="before")
    @classmethod
    def check_calculated_fields(cls, data):
        return reject_calculated_fields(data)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ahmed Traders",
                "phone_number": "03001234567",
                "type": "Supplier"
            }
        }


class PartnerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, min_length=1, max_length=20)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[PartnerType] = None

    @model_validator(mode="before")
    @classmethod
    def check_calculated_fields(cls, data):
        return reject_calculated_fields(data)


class PartnerResponse(BaseModel):
    id: str
    name: str
    phone_number: str
    description: Optional[str] = None
    type: PartnerType
    balance: Decimal
    paid: Decimal
    left: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
