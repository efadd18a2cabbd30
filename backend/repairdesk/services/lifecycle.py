"""Job status lifecycle.

Two transition tables are available. The permissive table (default) lets any
non-terminal status move to any other status; only terminal locking and the
RECEIVED rule apply. The strict table enforces the forward-only workshop flow
and is selected with the ``JOB_STATUS_STRICT`` config flag.

RECEIVED is the creation status and is never a regular target. The single
exception is resuming an ON_HOLD job that was put on hold while RECEIVED.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from repairdesk.errors import ValidationError
from repairdesk.models.job import Job
from repairdesk.utils.fsm import TransitionValidator

_NON_TERMINAL = [s for s in Job.ALL_STATUSES if s not in Job.TERMINAL_STATUSES]


def _permissive_graph() -> Dict[str, Set[str]]:
    graph: Dict[str, Set[str]] = {}
    for status in _NON_TERMINAL:
        graph[status] = {s for s in Job.ALL_STATUSES if s not in (status, Job.STATUS_RECEIVED)}
    for status in Job.TERMINAL_STATUSES:
        graph[status] = set()
    return graph


def _strict_graph() -> Dict[str, Set[str]]:
    forward = {
        Job.STATUS_RECEIVED: {Job.STATUS_DIAGNOSED},
        Job.STATUS_DIAGNOSED: {Job.STATUS_WAITING_APPROVAL},
        Job.STATUS_WAITING_APPROVAL: {Job.STATUS_IN_REPAIR},
        Job.STATUS_IN_REPAIR: {Job.STATUS_WAITING_PARTS, Job.STATUS_TESTING},
        Job.STATUS_WAITING_PARTS: {Job.STATUS_IN_REPAIR},
        Job.STATUS_TESTING: {Job.STATUS_READY_FOR_PICKUP, Job.STATUS_IN_REPAIR},
        Job.STATUS_READY_FOR_PICKUP: {Job.STATUS_COMPLETED},
        Job.STATUS_ON_HOLD: set(),
    }
    graph: Dict[str, Set[str]] = {}
    for status, targets in forward.items():
        escape = {Job.STATUS_CANCELLED} if status == Job.STATUS_ON_HOLD else {Job.STATUS_CANCELLED, Job.STATUS_ON_HOLD}
        graph[status] = targets | escape
    for status in Job.TERMINAL_STATUSES:
        graph[status] = set()
    return graph


PERMISSIVE_JOB_FSM = TransitionValidator(_permissive_graph(), terminal=Job.TERMINAL_STATUSES)
STRICT_JOB_FSM = TransitionValidator(_strict_graph(), terminal=Job.TERMINAL_STATUSES)


def job_fsm(strict: bool = False) -> TransitionValidator:
    return STRICT_JOB_FSM if strict else PERMISSIVE_JOB_FSM


def assert_status_change(job: Job, target: str, strict: bool = False) -> None:
    """Raise unless ``job`` may move to ``target``.

    InvalidStateError for terminal jobs and moves outside the table,
    ValidationError when the target equals the current status.
    """
    fsm = job_fsm(strict)
    current = job.status
    if current in fsm.terminal:
        fsm.assert_can_transition(current, target)
    if target == current:
        raise ValidationError('status unchanged', field='newStatus')
    if current == Job.STATUS_ON_HOLD and job.held_from_status:
        origin = job.held_from_status
        if target == origin:
            return
        # Resuming elsewhere: anything the paused-from status could reach.
        fsm.assert_can_transition(origin, target)
        return
    fsm.assert_can_transition(current, target)


def apply_status(job: Job, target: str, now: Optional[datetime] = None) -> str:
    """Mutate ``job`` into ``target`` and return the previous status.

    Callers must run ``assert_status_change`` first.
    """
    previous = job.status
    if target == Job.STATUS_ON_HOLD:
        job.held_from_status = previous
    elif previous == Job.STATUS_ON_HOLD:
        job.held_from_status = None
    job.status = target
    if target in Job.TERMINAL_STATUSES and job.completion_date is None:
        job.completion_date = now or datetime.now(timezone.utc)
    return previous


__all__ = ['PERMISSIVE_JOB_FSM', 'STRICT_JOB_FSM', 'job_fsm', 'assert_status_change', 'apply_status']
