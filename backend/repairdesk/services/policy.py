"""Single authorization policy for every protected operation.

Routes resolve the calling ``Actor`` from the JWT and services call
``authorize`` with the action, the target job (for ownership checks) and, for
updates, the set of fields being changed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional
from flask_jwt_extended import get_jwt, get_jwt_identity

from repairdesk.constants.permissions import (
    ALL_ROLES,
    SUPERVISOR_ROLES,
    READ_ACTIONS,
    ROLE_TECHNICIAN,
    ROLE_RECEPTIONIST,
    TECHNICIAN_JOB_ACTIONS,
    RECEPTIONIST_ACTIONS,
    RECEPTIONIST_EDITABLE_FIELDS,
    ACTION_JOB_UPDATE,
    ACTION_JOB_STATUS,
)
from repairdesk.errors import AuthorizationError
from repairdesk.models.job import Job


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str


def current_actor() -> Actor:
    """Build the Actor from the verified JWT (identity = user id, claim ``role``)."""
    claims = get_jwt()
    role = claims.get('role')
    if role not in ALL_ROLES:
        raise AuthorizationError('Token carries no recognised role')
    return Actor(user_id=int(get_jwt_identity()), role=role)


def is_allowed(actor: Actor, action: str, job: Optional[Job] = None, fields: Optional[Iterable[str]] = None) -> bool:
    if actor.role in SUPERVISOR_ROLES:
        return True
    if action in READ_ACTIONS:
        return True
    if actor.role == ROLE_TECHNICIAN:
        return action in TECHNICIAN_JOB_ACTIONS and job is not None and job.technician_id == actor.user_id
    if actor.role == ROLE_RECEPTIONIST:
        if action not in RECEPTIONIST_ACTIONS:
            return False
        if action == ACTION_JOB_UPDATE:
            return set(fields or ()) <= RECEPTIONIST_EDITABLE_FIELDS
        return True
    return False


def can_view_device_password(actor: Actor, job: Job) -> bool:
    """Intake staff, supervisors and the assigned technician may see the device password."""
    if actor.role == ROLE_RECEPTIONIST:
        return True
    return is_allowed(actor, ACTION_JOB_STATUS, job)


def authorize(actor: Actor, action: str, job: Optional[Job] = None, fields: Optional[Iterable[str]] = None) -> None:
    """Raise AuthorizationError unless ``actor`` may perform ``action``."""
    if is_allowed(actor, action, job, fields):
        return
    if actor.role == ROLE_TECHNICIAN and action in TECHNICIAN_JOB_ACTIONS:
        raise AuthorizationError('Job is not assigned to you')
    if actor.role == ROLE_RECEPTIONIST and action == ACTION_JOB_UPDATE:
        blocked = sorted(set(fields or ()) - RECEPTIONIST_EDITABLE_FIELDS)
        raise AuthorizationError(f"Role {actor.role} may not change: {', '.join(blocked)}")
    raise AuthorizationError(f'Role {actor.role} may not perform {action}')


__all__ = ['Actor', 'current_actor', 'is_allowed', 'can_view_device_password', 'authorize']
