from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, DateTime, func
from typing import Optional

Base = declarative_base()


class User(Base):
    __tablename__ = 'users'
    # Role constants
    ROLE_ADMIN = 'ADMIN'
    ROLE_MANAGER = 'MANAGER'
    ROLE_TECHNICIAN = 'TECHNICIAN'
    ROLE_RECEPTIONIST = 'RECEPTIONIST'
    ALL_ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_TECHNICIAN, ROLE_RECEPTIONIST)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=ROLE_RECEPTIONIST, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    locale: Mapped[str] = mapped_column(String(8), default='th')
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    @property
    def is_technician(self) -> bool:
        return self.role == self.ROLE_TECHNICIAN
