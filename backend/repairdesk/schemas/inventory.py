from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import Field, field_validator, model_validator

from .base import Payload


class CustomerCreate(Payload):
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=32)
    email: Optional[str] = Field(None, max_length=128)
    address: Optional[str] = None
    notes: Optional[str] = None


class PartialUpdate(Payload):
    """Edit payload: only the fields present in the request are applied."""

    @model_validator(mode='after')
    def _has_changes(self):
        if not self.changes():
            raise ValueError('at least one field to update is required')
        return self

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class CustomerUpdate(PartialUpdate):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, min_length=1, max_length=32)
    email: Optional[str] = Field(None, max_length=128)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('full_name', 'phone', mode='before')
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError('may not be null')
        return v


class PartCreate(Payload):
    part_number: str = Field(..., min_length=1, max_length=64)
    part_name: str = Field(..., min_length=1, max_length=200)
    stock_qty: int = Field(0, ge=0, strict=True)
    min_stock_qty: int = Field(0, ge=0, strict=True)
    unit_price: Decimal = Field(Decimal('0'), ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None


class PartUpdate(PartialUpdate):
    # stock_qty is not editable; stock moves through adjustments and job parts
    part_number: Optional[str] = Field(None, min_length=1, max_length=64)
    part_name: Optional[str] = Field(None, min_length=1, max_length=200)
    min_stock_qty: Optional[int] = Field(None, ge=0, strict=True)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None

    @field_validator('part_number', 'part_name', 'min_stock_qty', 'unit_price', mode='before')
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError('may not be null')
        return v


class StockAdjustment(Payload):
    delta: int = Field(..., strict=True)

    @field_validator('delta')
    @classmethod
    def _non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError('delta must be non-zero')
        return v
