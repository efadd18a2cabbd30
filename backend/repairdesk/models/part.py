from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Numeric, DateTime, CheckConstraint, func
from decimal import Decimal
from typing import Optional

from .authz import Base


class Part(Base):
    __tablename__ = 'parts'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    part_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (CheckConstraint('stock_qty >= 0', name='ck_parts_stock_non_negative'),)

    @property
    def is_low_stock(self) -> bool:
        return self.stock_qty <= self.min_stock_qty
