from __future__ import annotations
from flask import Blueprint
from sqlalchemy import select
from repairdesk.decorators.auth import require_roles
from repairdesk.models.authz import User
from repairdesk import get_db

users_bp = Blueprint('users', __name__)


@users_bp.get('/technicians')
@require_roles()
def list_technicians():
    """Active technicians, the valid targets of a job assignment."""
    rows = get_db().execute(
        select(User)
        .where(User.role == User.ROLE_TECHNICIAN, User.is_active.is_(True))
        .order_by(User.name.asc(), User.id.asc())
    ).scalars().all()
    data = [{'id': u.id, 'name': u.name, 'email': u.email, 'phone': u.phone} for u in rows]
    return {'data': data, 'total': len(data)}
