"""Customer and spare-part reference data."""
from __future__ import annotations
import logging
from typing import Optional
from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session, Query

from repairdesk.constants.permissions import (
    ACTION_CUSTOMER_CREATE,
    ACTION_CUSTOMER_UPDATE,
    ACTION_CUSTOMER_DELETE,
    ACTION_PART_MANAGE,
)
from repairdesk.errors import InsufficientStockError, InvalidStateError, NotFoundError, ValidationError
from repairdesk.models.customer import Customer
from repairdesk.models.job import Job
from repairdesk.models.part import Part
from repairdesk.schemas.inventory import CustomerCreate, CustomerUpdate, PartCreate, PartUpdate, StockAdjustment
from repairdesk.services.notifications import Notifier, dispatch, low_stock_event
from repairdesk.services.policy import Actor, authorize

logger = logging.getLogger(__name__)


# ---------------- customers ---------------- #
def customer_query(session: Session, search: Optional[str] = None) -> Query:
    q = session.query(Customer)
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Customer.full_name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like)))
    return q


def load_customer(session: Session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError('Customer', customer_id)
    return customer


def count_customer_jobs(session: Session, customer_id: int) -> int:
    return session.execute(select(func.count(Job.id)).where(Job.customer_id == customer_id)).scalar_one()


def create_customer(session: Session, actor: Actor, payload: CustomerCreate) -> Customer:
    authorize(actor, ACTION_CUSTOMER_CREATE)
    customer = Customer(**payload.model_dump())
    session.add(customer)
    session.commit()
    return customer


def update_customer(session: Session, actor: Actor, customer_id: int, payload: CustomerUpdate) -> Customer:
    authorize(actor, ACTION_CUSTOMER_UPDATE)
    customer = load_customer(session, customer_id)
    for name, value in payload.changes().items():
        setattr(customer, name, value)
    session.commit()
    session.refresh(customer)
    return customer


def delete_customer(session: Session, actor: Actor, customer_id: int) -> None:
    """Only customers without any job may be removed."""
    authorize(actor, ACTION_CUSTOMER_DELETE)
    customer = load_customer(session, customer_id)
    jobs = count_customer_jobs(session, customer.id)
    if jobs:
        raise InvalidStateError(f'Customer {customer.id} has {jobs} job(s) and cannot be deleted')
    session.delete(customer)
    session.commit()
    logger.info('customer deleted id=%s by user=%s', customer_id, actor.user_id)


# ---------------- parts ---------------- #
def part_query(session: Session, search: Optional[str] = None, low_stock: bool = False) -> Query:
    q = session.query(Part)
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Part.part_number.ilike(like), Part.part_name.ilike(like)))
    if low_stock:
        q = q.filter(Part.stock_qty <= Part.min_stock_qty)
    return q


def load_part(session: Session, part_id: int) -> Part:
    part = session.get(Part, part_id)
    if part is None:
        raise NotFoundError('Part', part_id)
    return part


def create_part(session: Session, actor: Actor, payload: PartCreate) -> Part:
    authorize(actor, ACTION_PART_MANAGE)
    if session.execute(select(Part.id).where(Part.part_number == payload.part_number)).scalar_one_or_none():
        raise ValidationError('partNumber exists', field='partNumber')
    part = Part(**payload.model_dump())
    session.add(part)
    session.commit()
    return part


def update_part(session: Session, actor: Actor, part_id: int, payload: PartUpdate) -> Part:
    """Edit catalogue fields of a part; stock is never touched here."""
    authorize(actor, ACTION_PART_MANAGE)
    part = load_part(session, part_id)
    changes = payload.changes()
    number = changes.get('part_number')
    if number is not None and number != part.part_number:
        taken = session.execute(select(Part.id).where(Part.part_number == number, Part.id != part.id)).scalar_one_or_none()
        if taken:
            raise ValidationError('partNumber exists', field='partNumber')
    for name, value in changes.items():
        setattr(part, name, value)
    session.commit()
    session.refresh(part)
    return part


def adjust_stock(session: Session, actor: Actor, part_id: int, payload: StockAdjustment, notifier: Optional[Notifier] = None, alert_email: Optional[str] = None) -> Part:
    """Apply a signed stock delta; the result may not go negative."""
    authorize(actor, ACTION_PART_MANAGE)
    part = load_part(session, part_id)
    delta = payload.delta
    result = session.execute(
        update(Part)
        .where(Part.id == part.id, Part.stock_qty + delta >= 0)
        .values(stock_qty=Part.stock_qty + delta)
    )
    if result.rowcount == 0:
        session.rollback()
        session.refresh(part)
        raise InsufficientStockError(part.id, -delta, part.stock_qty)
    session.commit()
    session.refresh(part)
    if delta < 0 and part.is_low_stock:
        dispatch(notifier, low_stock_event(part, alert_email))
    return part
