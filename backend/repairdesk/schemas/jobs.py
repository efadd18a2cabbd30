"""Request payloads for job commands.

Each model is a pure validator: it never touches the database. Reference
existence (customer, miner model, warranty profile, part, technician) is
checked by the service layer after validation succeeds.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import Field, field_validator, model_validator

from .base import Payload, EntityId

# Fields that may be sent as null on update to clear the stored value.
CLEARABLE_FIELDS = ('warranty_profile_id', 'estimated_done_date', 'serial_number', 'password', 'customer_notes')


class JobStatus(str, Enum):
    RECEIVED = 'RECEIVED'
    DIAGNOSED = 'DIAGNOSED'
    WAITING_APPROVAL = 'WAITING_APPROVAL'
    IN_REPAIR = 'IN_REPAIR'
    WAITING_PARTS = 'WAITING_PARTS'
    TESTING = 'TESTING'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    ON_HOLD = 'ON_HOLD'


class JobCreate(Payload):
    customer_id: EntityId
    miner_model_id: EntityId
    problem_description: str = Field(..., min_length=10, max_length=5000)
    priority: int = Field(0, ge=0, le=2, strict=True)
    warranty_profile_id: Optional[EntityId] = None
    estimated_done_date: Optional[datetime] = None
    serial_number: Optional[str] = Field(None, max_length=128)
    password: Optional[str] = Field(None, max_length=128)
    customer_notes: Optional[str] = Field(None, max_length=5000)


class JobUpdate(Payload):
    customer_id: Optional[EntityId] = None
    miner_model_id: Optional[EntityId] = None
    problem_description: Optional[str] = Field(None, min_length=10, max_length=5000)
    priority: Optional[int] = Field(None, ge=0, le=2, strict=True)
    warranty_profile_id: Optional[EntityId] = None
    estimated_done_date: Optional[datetime] = None
    serial_number: Optional[str] = Field(None, max_length=128)
    password: Optional[str] = Field(None, max_length=128)
    customer_notes: Optional[str] = Field(None, max_length=5000)
    version: Optional[int] = Field(None, ge=1, strict=True)

    @field_validator('customer_id', 'miner_model_id', 'problem_description', 'priority', mode='before')
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError('may not be null')
        return v

    @model_validator(mode='after')
    def _has_changes(self):
        if not self.changes():
            raise ValueError('at least one field to update is required')
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent (explicit nulls included)."""
        return {name: getattr(self, name) for name in self.model_fields_set if name != 'version'}


class StatusChange(Payload):
    new_status: JobStatus
    note: Optional[str] = Field(None, max_length=500)
    version: Optional[int] = Field(None, ge=1, strict=True)


class TechnicianAssignment(Payload):
    technician_id: EntityId
    note: Optional[str] = Field(None, max_length=500)
    version: Optional[int] = Field(None, ge=1, strict=True)


class RepairRecordCreate(Payload):
    description: str = Field(..., min_length=10, max_length=5000)
    findings: Optional[str] = Field(None, max_length=5000)
    actions: Optional[str] = Field(None, max_length=5000)


class JobPartCreate(Payload):
    part_id: EntityId
    quantity: int = Field(..., ge=1, strict=True)
    unit_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=500)


__all__ = [
    'CLEARABLE_FIELDS', 'JobStatus', 'JobCreate', 'JobUpdate', 'StatusChange',
    'TechnicianAssignment', 'RepairRecordCreate', 'JobPartCreate',
]
