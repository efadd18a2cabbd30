from __future__ import annotations
from flask import Blueprint, request, current_app
from sqlalchemy import select
from repairdesk.decorators.auth import require_roles
from repairdesk.constants.permissions import ROLE_ADMIN, ROLE_MANAGER, ROLE_TECHNICIAN, ROLE_RECEPTIONIST
from repairdesk.utils.listing import paginated_response, single_resource_response
from repairdesk.utils.sorting import apply_multi_sort
from repairdesk.utils.filters import apply_filters
from repairdesk.utils.validation import parse_payload, validate_status
from repairdesk.services import jobs as job_service
from repairdesk.services.audit import job_activity, status_history
from repairdesk.services.policy import Actor, current_actor, can_view_device_password
from repairdesk.schemas.jobs import JobCreate, JobUpdate, StatusChange, TechnicianAssignment, RepairRecordCreate, JobPartCreate
from repairdesk.models.job import Job, JobPart, RepairRecord
from repairdesk.models.audit import ActivityLog
from repairdesk import get_db

jobs_bp = Blueprint('jobs', __name__)

SORT_FIELDS = {
    'jobNumber': Job.job_number,
    'status': Job.status,
    'priority': Job.priority,
    'createdAt': Job.created_at,
    'updatedAt': Job.updated_at,
    'id': Job.id,
}


def _notifier():
    return current_app.extensions.get('notifier')


@jobs_bp.route('', methods=['GET', 'HEAD'])
@require_roles()
def list_jobs():
    session = get_db()
    q = job_service.job_query(session, search=request.args.get('search'))
    filter_specs = {
        'status': {'coerce': lambda v: validate_status(v, Job.ALL_STATUSES), 'op': lambda qu, v: qu.filter(Job.status == v)},
        'technicianId': {'coerce': int, 'op': lambda qu, v: qu.filter(Job.technician_id == v)},
        'customerId': {'coerce': int, 'op': lambda qu, v: qu.filter(Job.customer_id == v)},
        'priority': {'coerce': int, 'validate': lambda v: 0 <= v <= 2, 'op': lambda qu, v: qu.filter(Job.priority == v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, Job.id, default='-createdAt')
    return paginated_response(q, _job_json)


@jobs_bp.get('/stats')
@require_roles()
def job_stats():
    return job_service.job_statistics(get_db())


@jobs_bp.route('/<int:job_id>', methods=['GET', 'HEAD'])
@require_roles()
def get_job(job_id: int):
    session = get_db()
    actor = current_actor()
    job = job_service.get_job(session, actor, job_id)
    return single_resource_response(job.id, _job_detail_json(job, actor), job.updated_at)


@jobs_bp.get('/<int:job_id>/activity')
@require_roles()
def get_job_activity(job_id: int):
    session = get_db()
    job = job_service.get_job(session, current_actor(), job_id)
    rows = [_activity_json(a) for a in job_activity(session, job.id)]
    return {'data': rows, 'total': len(rows)}


@jobs_bp.post('')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_RECEPTIONIST)
def create_job():
    payload = parse_payload(JobCreate, request.get_json(silent=True))
    job = job_service.create_job(
        get_db(), current_actor(), payload,
        notifier=_notifier(), prefix=current_app.config['JOB_NUMBER_PREFIX'],
    )
    return _job_json(job), 201


@jobs_bp.patch('/<int:job_id>')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_RECEPTIONIST)
def update_job(job_id: int):
    payload = parse_payload(JobUpdate, request.get_json(silent=True))
    job = job_service.update_job(get_db(), current_actor(), job_id, payload)
    return _job_json(job)


@jobs_bp.patch('/<int:job_id>/status')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_TECHNICIAN)
def change_status(job_id: int):
    payload = parse_payload(StatusChange, request.get_json(silent=True))
    job = job_service.change_status(
        get_db(), current_actor(), job_id, payload,
        notifier=_notifier(), strict=current_app.config['JOB_STATUS_STRICT'],
    )
    return _job_json(job)


@jobs_bp.patch('/<int:job_id>/assign')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def assign_technician(job_id: int):
    payload = parse_payload(TechnicianAssignment, request.get_json(silent=True))
    job = job_service.assign_technician(get_db(), current_actor(), job_id, payload)
    return _job_json(job)


@jobs_bp.post('/<int:job_id>/records')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_TECHNICIAN)
def add_repair_record(job_id: int):
    payload = parse_payload(RepairRecordCreate, request.get_json(silent=True))
    record = job_service.add_repair_record(get_db(), current_actor(), job_id, payload)
    return _record_json(record), 201


@jobs_bp.post('/<int:job_id>/parts')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_TECHNICIAN)
def add_job_part(job_id: int):
    payload = parse_payload(JobPartCreate, request.get_json(silent=True))
    usage = job_service.add_job_part(
        get_db(), current_actor(), job_id, payload,
        notifier=_notifier(), alert_email=current_app.config.get('LOW_STOCK_ALERT_EMAIL'),
    )
    return _job_part_json(usage), 201


@jobs_bp.delete('/<int:job_id>/parts/<int:job_part_id>')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def remove_job_part(job_id: int, job_part_id: int):
    part = job_service.remove_job_part(get_db(), current_actor(), job_id, job_part_id)
    return {'id': job_part_id, 'partId': part.id, 'stockQty': part.stock_qty}


# ---------------- serializers ---------------- #
def _iso(dt):
    return dt.isoformat() if dt else None


def _job_json(j: Job):
    return {
        'id': j.id,
        'jobNumber': j.job_number,
        'status': j.status,
        'heldFromStatus': j.held_from_status,
        'priority': j.priority,
        'problemDescription': j.problem_description,
        'customerNotes': j.customer_notes,
        'serialNumber': j.serial_number,
        'estimatedDoneDate': _iso(j.estimated_done_date),
        'completionDate': _iso(j.completion_date),
        'customerId': j.customer_id,
        'minerModelId': j.miner_model_id,
        'technicianId': j.technician_id,
        'warrantyProfileId': j.warranty_profile_id,
        'createdBy': j.created_by,
        'version': j.version,
        'createdAt': _iso(j.created_at),
        'updatedAt': _iso(j.updated_at),
    }


def _job_detail_json(j: Job, actor: Actor):
    body = _job_json(j)
    c = j.customer
    m = j.miner_model
    body['password'] = j.password if can_view_device_password(actor, j) else None
    body['customer'] = {'id': c.id, 'fullName': c.full_name, 'phone': c.phone, 'email': c.email} if c else None
    body['minerModel'] = {'id': m.id, 'modelName': m.model_name, 'brand': m.brand.name if m.brand else None} if m else None
    body['technician'] = {'id': j.technician.id, 'name': j.technician.name} if j.technician else None
    w = j.warranty_profile
    body['warrantyProfile'] = {'id': w.id, 'name': w.name, 'durationDays': w.duration_days} if w else None
    session = get_db()
    records = session.execute(select(RepairRecord).where(RepairRecord.job_id == j.id).order_by(RepairRecord.id)).scalars()
    parts = session.execute(select(JobPart).where(JobPart.job_id == j.id).order_by(JobPart.id)).scalars()
    body['records'] = [_record_json(r) for r in records]
    body['parts'] = [_job_part_json(p) for p in parts]
    body['statusHistory'] = [
        {
            'fromStatus': (a.meta or {}).get('from_status'),
            'toStatus': (a.meta or {}).get('to_status'),
            'note': (a.meta or {}).get('note'),
            'changedBy': a.actor_user_id,
            'changedAt': _iso(a.created_at),
        }
        for a in status_history(session, j.id)
    ]
    return body


def _record_json(r: RepairRecord):
    return {
        'id': r.id,
        'jobId': r.job_id,
        'description': r.description,
        'findings': r.findings,
        'actions': r.actions,
        'createdBy': r.created_by,
        'createdAt': _iso(r.created_at),
    }


def _job_part_json(p: JobPart):
    return {
        'id': p.id,
        'jobId': p.job_id,
        'partId': p.part_id,
        'quantity': p.quantity,
        'unitPrice': str(p.unit_price),
        'notes': p.notes,
        'createdAt': _iso(p.created_at),
    }


def _activity_json(a: ActivityLog):
    return {
        'id': a.id,
        'jobId': a.job_id,
        'actorUserId': a.actor_user_id,
        'action': a.action,
        'description': a.description,
        'meta': a.meta or {},
        'createdAt': _iso(a.created_at),
    }
