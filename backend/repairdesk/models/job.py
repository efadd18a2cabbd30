from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint, func

from .authz import Base


class Job(Base):
    __tablename__ = 'jobs'
    # Status constants
    STATUS_RECEIVED = 'RECEIVED'
    STATUS_DIAGNOSED = 'DIAGNOSED'
    STATUS_WAITING_APPROVAL = 'WAITING_APPROVAL'
    STATUS_IN_REPAIR = 'IN_REPAIR'
    STATUS_WAITING_PARTS = 'WAITING_PARTS'
    STATUS_TESTING = 'TESTING'
    STATUS_READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_ON_HOLD = 'ON_HOLD'
    ALL_STATUSES = (
        STATUS_RECEIVED,
        STATUS_DIAGNOSED,
        STATUS_WAITING_APPROVAL,
        STATUS_IN_REPAIR,
        STATUS_WAITING_PARTS,
        STATUS_TESTING,
        STATUS_READY_FOR_PICKUP,
        STATUS_COMPLETED,
        STATUS_CANCELLED,
        STATUS_ON_HOLD,
    )
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)
    # Priority levels
    PRIORITY_NORMAL = 0
    PRIORITY_URGENT = 1
    PRIORITY_CRITICAL = 2

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_RECEIVED, index=True)
    held_from_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=PRIORITY_NORMAL, index=True)
    problem_description: Mapped[str] = mapped_column(Text, nullable=False)
    customer_notes: Mapped[Optional[str]] = mapped_column(Text)
    serial_number: Mapped[Optional[str]] = mapped_column(String(128), index=True)
    password: Mapped[Optional[str]] = mapped_column(String(128))
    estimated_done_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), nullable=False, index=True)
    miner_model_id: Mapped[int] = mapped_column(ForeignKey('miner_models.id'), nullable=False)
    technician_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True, index=True)
    warranty_profile_id: Mapped[Optional[int]] = mapped_column(ForeignKey('warranty_profiles.id'), nullable=True)
    created_by: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship('Customer')
    miner_model = relationship('MinerModel')
    technician = relationship('User', foreign_keys=[technician_id])
    warranty_profile = relationship('WarrantyProfile')
    records = relationship('RepairRecord', back_populates='job', order_by='RepairRecord.id')
    parts = relationship('JobPart', back_populates='job', order_by='JobPart.id')

    # UPDATEs carry "AND version = :old"; a lost race raises StaleDataError on flush.
    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        CheckConstraint('priority BETWEEN 0 AND 2', name='ck_jobs_priority'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


class RepairRecord(Base):
    __tablename__ = 'repair_records'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey('jobs.id'), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    findings: Mapped[Optional[str]] = mapped_column(Text)
    actions: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    job = relationship('Job', back_populates='records')


class JobPart(Base):
    __tablename__ = 'job_parts'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey('jobs.id'), nullable=False, index=True)
    part_id: Mapped[int] = mapped_column(ForeignKey('parts.id'), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    job = relationship('Job', back_populates='parts')
    part = relationship('Part')

    __table_args__ = (CheckConstraint('quantity >= 1', name='ck_job_parts_quantity'),)
