from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey
from typing import Optional

from .authz import Base


class Brand(Base):
    __tablename__ = 'brands'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    models = relationship('MinerModel', back_populates='brand')


class MinerModel(Base):
    """Device type a job is opened against (e.g. Antminer S19 Pro)."""
    __tablename__ = 'miner_models'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    brand_id: Mapped[int] = mapped_column(ForeignKey('brands.id'), nullable=False, index=True)
    model_name: Mapped[str] = mapped_column(String(120), nullable=False)
    hashrate: Mapped[Optional[str]] = mapped_column(String(32))
    power_usage: Mapped[Optional[str]] = mapped_column(String(32))
    description: Mapped[Optional[str]] = mapped_column(Text)
    brand = relationship('Brand', back_populates='models')


class WarrantyProfile(Base):
    __tablename__ = 'warranty_profiles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    description: Mapped[Optional[str]] = mapped_column(Text)
    terms: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
