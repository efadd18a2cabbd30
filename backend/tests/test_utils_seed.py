"""Test seeding utilities to reduce duplication.

Helpers are idempotent on their natural key (email, phone, part number) so
tests sharing the session-wide in-memory database can call them freely.
"""
from decimal import Decimal
from typing import Optional
from repairdesk import get_db
from repairdesk.models.authz import User
from repairdesk.models.customer import Customer
from repairdesk.models.catalog import Brand, MinerModel, WarrantyProfile
from repairdesk.models.part import Part


def ensure_user(email: str, role: str = User.ROLE_ADMIN, name: Optional[str] = None, is_active: bool = True, password: str = 'pw') -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=name or email.split('@')[0], email=email, role=role, is_active=is_active)
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def ensure_customer(phone: str = '0800000001', full_name: str = 'Test Customer', email: Optional[str] = None) -> Customer:
    session = get_db()
    c = session.query(Customer).filter_by(phone=phone).one_or_none()
    if not c:
        c = Customer(full_name=full_name, phone=phone, email=email)
        session.add(c); session.commit(); session.refresh(c)
    return c


def ensure_miner_model(model_name: str = 'Antminer S19 Pro', brand_name: str = 'Bitmain') -> MinerModel:
    session = get_db()
    brand = session.query(Brand).filter_by(name=brand_name).one_or_none()
    if not brand:
        brand = Brand(name=brand_name)
        session.add(brand); session.flush()
    m = session.query(MinerModel).filter_by(brand_id=brand.id, model_name=model_name).one_or_none()
    if not m:
        m = MinerModel(brand_id=brand.id, model_name=model_name, hashrate='110 TH/s', power_usage='3250W')
        session.add(m)
    session.commit(); session.refresh(m)
    return m


def ensure_warranty(name: str = 'Warranty 30 days', duration_days: int = 30, is_active: bool = True) -> WarrantyProfile:
    session = get_db()
    w = session.query(WarrantyProfile).filter_by(name=name).one_or_none()
    if not w:
        w = WarrantyProfile(name=name, duration_days=duration_days, is_active=is_active)
        session.add(w); session.commit(); session.refresh(w)
    return w


def ensure_part(part_number: str, stock_qty: int = 10, min_stock_qty: int = 2, unit_price: str = '100.00', part_name: Optional[str] = None) -> Part:
    """Idempotently ensure a Part exists (by part number). Returns the Part."""
    session = get_db()
    p = session.query(Part).filter_by(part_number=part_number).one_or_none()
    if not p:
        p = Part(part_number=part_number, part_name=part_name or part_number, stock_qty=stock_qty,
                 min_stock_qty=min_stock_qty, unit_price=Decimal(unit_price))
        session.add(p); session.commit(); session.refresh(p)
    return p


def reload(model, pk):
    """Fetch a fresh copy of a row, bypassing any cached state in the session."""
    return get_db().get(model, pk, populate_existing=True)


__all__ = ['ensure_user', 'ensure_customer', 'ensure_miner_model', 'ensure_warranty', 'ensure_part', 'reload']
