"""Job command handlers.

Every handler takes the request session and the calling ``Actor``, validates
references, consults the lifecycle table and the authorization policy, applies
the change and commits. Notifications are dispatched only after a successful
commit.
"""
from __future__ import annotations
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, Query
from sqlalchemy.orm.exc import StaleDataError

from repairdesk.constants.permissions import (
    ACTION_JOB_READ,
    ACTION_JOB_CREATE,
    ACTION_JOB_UPDATE,
    ACTION_JOB_STATUS,
    ACTION_JOB_ASSIGN,
    ACTION_JOB_RECORD,
    ACTION_JOB_PART_ADD,
    ACTION_JOB_PART_REMOVE,
)
from repairdesk.errors import (
    ConflictError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from repairdesk.models.audit import ActivityLog
from repairdesk.models.authz import User
from repairdesk.models.catalog import MinerModel, WarrantyProfile
from repairdesk.models.customer import Customer
from repairdesk.models.job import Job, JobPart, RepairRecord
from repairdesk.models.part import Part
from repairdesk.schemas.jobs import (
    JobCreate,
    JobUpdate,
    StatusChange,
    TechnicianAssignment,
    RepairRecordCreate,
    JobPartCreate,
)
from repairdesk.services.audit import add_activity, diff_fields
from repairdesk.services.job_numbers import next_job_number, DEFAULT_PREFIX
from repairdesk.services.lifecycle import assert_status_change, apply_status
from repairdesk.services.notifications import (
    Notifier,
    dispatch,
    job_created_event,
    job_completed_event,
    low_stock_event,
)
from repairdesk.services.policy import Actor, authorize

logger = logging.getLogger(__name__)

JOB_NUMBER_ATTEMPTS = 5

# Payload field -> (model, resource label, API field name)
_REFERENCES = {
    'customer_id': (Customer, 'Customer', 'customerId'),
    'miner_model_id': (MinerModel, 'MinerModel', 'minerModelId'),
    'warranty_profile_id': (WarrantyProfile, 'WarrantyProfile', 'warrantyProfileId'),
}


# ---------------- helpers ---------------- #
def load_job(session: Session, job_id: int) -> Job:
    job = session.get(Job, job_id, populate_existing=True)
    if job is None:
        raise NotFoundError('Job', job_id)
    return job


def _require_reference(session: Session, attr: str, value: int):
    model, label, field = _REFERENCES[attr]
    obj = session.get(model, value)
    if obj is None:
        raise NotFoundError(label, value, field=field)
    return obj


def _assert_open(job: Job):
    if job.is_terminal:
        raise InvalidStateError(f'Job {job.job_number} is {job.status} and can no longer be modified')


def _check_version(job: Job, expected: Optional[int]):
    if expected is not None and expected != job.version:
        raise ConflictError(f'Job {job.job_number} was modified (version {job.version}, expected {expected}); reload and retry')


def _commit(session: Session, job: Job):
    """Commit, turning a lost optimistic-lock race into ConflictError."""
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        logger.info('concurrent modification detected job_id=%s', job.id)
        raise ConflictError(f'Job {job.id} was modified concurrently; reload and retry') from None


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


# ---------------- commands ---------------- #
def create_job(session: Session, actor: Actor, payload: JobCreate, notifier: Optional[Notifier] = None, prefix: str = DEFAULT_PREFIX) -> Job:
    authorize(actor, ACTION_JOB_CREATE)
    _require_reference(session, 'customer_id', payload.customer_id)
    _require_reference(session, 'miner_model_id', payload.miner_model_id)
    if payload.warranty_profile_id is not None:
        _require_reference(session, 'warranty_profile_id', payload.warranty_profile_id)
    fields = payload.model_dump()
    for attempt in range(1, JOB_NUMBER_ATTEMPTS + 1):
        job = Job(
            job_number=next_job_number(session, prefix),
            status=Job.STATUS_RECEIVED,
            created_by=actor.user_id,
            **fields,
        )
        session.add(job)
        try:
            session.flush()
        except IntegrityError:
            # Another request took the same number; recompute and retry.
            session.rollback()
            logger.warning('job number collision number=%s attempt=%s', job.job_number, attempt)
            continue
        add_activity(session, job.id, actor.user_id, ActivityLog.ACTION_CREATE, f'Job {job.job_number} created', {'status': job.status})
        session.commit()
        break
    else:
        raise ConflictError('Could not allocate a job number; retry the request')
    logger.info('job created job_number=%s by user=%s', job.job_number, actor.user_id)
    dispatch(notifier, job_created_event(job))
    return job


def update_job(session: Session, actor: Actor, job_id: int, payload: JobUpdate) -> Job:
    job = load_job(session, job_id)
    changes = payload.changes()
    authorize(actor, ACTION_JOB_UPDATE, job, fields=changes.keys())
    _assert_open(job)
    _check_version(job, payload.version)
    for attr in _REFERENCES:
        if changes.get(attr) is not None:
            _require_reference(session, attr, changes[attr])
    before = {k: _jsonable(getattr(job, k)) for k in changes}
    for k, v in changes.items():
        setattr(job, k, v)
    diff = diff_fields(before, {k: _jsonable(v) for k, v in changes.items()})
    if diff:
        add_activity(session, job.id, actor.user_id, ActivityLog.ACTION_UPDATE, f'Job {job.job_number} updated', {'changes': diff})
    _commit(session, job)
    return job


def change_status(session: Session, actor: Actor, job_id: int, payload: StatusChange, notifier: Optional[Notifier] = None, strict: bool = False) -> Job:
    job = load_job(session, job_id)
    authorize(actor, ACTION_JOB_STATUS, job)
    _check_version(job, payload.version)
    target = payload.new_status.value
    assert_status_change(job, target, strict)
    customer = session.get(Customer, job.customer_id)
    previous = apply_status(job, target)
    add_activity(
        session, job.id, actor.user_id, ActivityLog.ACTION_STATUS_CHANGE,
        f'Status changed from {previous} to {target}',
        {'from_status': previous, 'to_status': target, 'note': payload.note},
    )
    _commit(session, job)
    logger.info('job status changed job_number=%s %s -> %s', job.job_number, previous, target)
    if target == Job.STATUS_COMPLETED:
        dispatch(notifier, job_completed_event(job, customer))
    return job


def assign_technician(session: Session, actor: Actor, job_id: int, payload: TechnicianAssignment) -> Job:
    job = load_job(session, job_id)
    authorize(actor, ACTION_JOB_ASSIGN, job)
    _assert_open(job)
    _check_version(job, payload.version)
    tech = session.get(User, payload.technician_id)
    if tech is None:
        raise NotFoundError('User', payload.technician_id, field='technicianId')
    if not tech.is_technician or not tech.is_active:
        raise ValidationError(f'User {tech.id} is not an active technician', field='technicianId')
    previous = job.technician_id
    job.technician_id = tech.id
    add_activity(
        session, job.id, actor.user_id, ActivityLog.ACTION_ASSIGN,
        f'Technician {tech.name} assigned',
        {'previous_technician_id': previous, 'technician_id': tech.id, 'note': payload.note},
    )
    _commit(session, job)
    return job


def add_repair_record(session: Session, actor: Actor, job_id: int, payload: RepairRecordCreate) -> RepairRecord:
    job = load_job(session, job_id)
    authorize(actor, ACTION_JOB_RECORD, job)
    _assert_open(job)
    record = RepairRecord(job_id=job.id, created_by=actor.user_id, **payload.model_dump())
    session.add(record)
    session.flush()
    add_activity(session, job.id, actor.user_id, ActivityLog.ACTION_RECORD_ADD, 'Repair record added', {'record_id': record.id})
    session.commit()
    return record


def add_job_part(session: Session, actor: Actor, job_id: int, payload: JobPartCreate, notifier: Optional[Notifier] = None, alert_email: Optional[str] = None) -> JobPart:
    """Draw ``quantity`` of a part for a job.

    The stock decrement is a conditional UPDATE (``stock_qty >= quantity``)
    sharing one transaction with the usage row and activity entry, so stock
    can never go negative and a failure leaves nothing behind.
    """
    job = load_job(session, job_id)
    authorize(actor, ACTION_JOB_PART_ADD, job)
    _assert_open(job)
    part = session.get(Part, payload.part_id)
    if part is None:
        raise NotFoundError('Part', payload.part_id, field='partId')
    qty = payload.quantity
    try:
        result = session.execute(
            update(Part)
            .where(Part.id == part.id, Part.stock_qty >= qty)
            .values(stock_qty=Part.stock_qty - qty)
        )
        if result.rowcount == 0:
            session.refresh(part)
            raise InsufficientStockError(part.id, qty, part.stock_qty)
        usage = JobPart(job_id=job.id, part_id=part.id, quantity=qty, unit_price=payload.unit_price, notes=payload.notes)
        session.add(usage)
        session.flush()
        session.refresh(part)
        add_activity(
            session, job.id, actor.user_id, ActivityLog.ACTION_PART_ADD,
            f'Used {qty} x {part.part_name}',
            {'job_part_id': usage.id, 'part_id': part.id, 'quantity': qty, 'unit_price': str(payload.unit_price), 'remaining_stock': part.stock_qty},
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    if part.is_low_stock:
        dispatch(notifier, low_stock_event(part, alert_email))
    return usage


def remove_job_part(session: Session, actor: Actor, job_id: int, job_part_id: int) -> Part:
    """Delete a usage line and return its quantity to stock. Returns the part."""
    job = load_job(session, job_id)
    authorize(actor, ACTION_JOB_PART_REMOVE, job)
    _assert_open(job)
    usage = session.get(JobPart, job_part_id)
    if usage is None or usage.job_id != job.id:
        raise NotFoundError('JobPart', job_part_id)
    part_id, qty = usage.part_id, usage.quantity
    try:
        session.execute(update(Part).where(Part.id == part_id).values(stock_qty=Part.stock_qty + qty))
        add_activity(
            session, job.id, actor.user_id, ActivityLog.ACTION_PART_REMOVE,
            f'Returned {qty} of part {part_id} to stock',
            {'job_part_id': job_part_id, 'part_id': part_id, 'quantity': qty},
        )
        session.delete(usage)
        session.commit()
    except Exception:
        session.rollback()
        raise
    part = session.get(Part, part_id)
    session.refresh(part)
    return part


# ---------------- queries ---------------- #
def get_job(session: Session, actor: Actor, job_id: int) -> Job:
    authorize(actor, ACTION_JOB_READ)
    return load_job(session, job_id)


def job_query(session: Session, search: Optional[str] = None, status: Optional[str] = None, technician_id: Optional[int] = None, priority: Optional[int] = None, customer_id: Optional[int] = None) -> Query:
    q = session.query(Job)
    if search:
        like = f'%{search}%'
        q = q.outerjoin(Customer, Customer.id == Job.customer_id).filter(or_(
            Job.job_number.ilike(like),
            Job.serial_number.ilike(like),
            Customer.full_name.ilike(like),
            Customer.phone.ilike(like),
        ))
    if status:
        q = q.filter(Job.status == status)
    if technician_id is not None:
        q = q.filter(Job.technician_id == technician_id)
    if priority is not None:
        q = q.filter(Job.priority == priority)
    if customer_id is not None:
        q = q.filter(Job.customer_id == customer_id)
    return q


def job_statistics(session: Session) -> Dict[str, int]:
    counts = dict(session.execute(select(Job.status, func.count(Job.id)).group_by(Job.status)).all())
    stats = {status: int(counts.get(status, 0)) for status in Job.ALL_STATUSES}
    total = sum(stats.values())
    stats['total'] = total
    stats['active'] = total - stats[Job.STATUS_COMPLETED] - stats[Job.STATUS_CANCELLED]
    return stats


__all__ = [
    'load_job', 'create_job', 'update_job', 'change_status', 'assign_technician',
    'add_repair_record', 'add_job_part', 'remove_job_part',
    'get_job', 'job_query', 'job_statistics',
]
