from __future__ import annotations
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from repairdesk.models.audit import ActivityLog


def add_activity(session: Session, job_id: int, actor_user_id: int, action: str, description: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> ActivityLog:
    """Persist an activity entry within the caller's DB session.

    Parameters:
      job_id: job the entry belongs to
      actor_user_id: user performing the action
      action: short action code e.g. JOB.STATUS.CHANGE, JOB.PART.ADD
      description: human readable summary
      meta: additional JSON-safe dictionary (will be shallow copied)
    """
    log = ActivityLog(
        job_id=job_id,
        actor_user_id=actor_user_id,
        action=action,
        description=description,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log


def job_activity(session: Session, job_id: int, action: Optional[str] = None) -> List[ActivityLog]:
    q = select(ActivityLog).where(ActivityLog.job_id == job_id)
    if action:
        q = q.where(ActivityLog.action == action)
    return list(session.execute(q.order_by(ActivityLog.id.asc())).scalars())


def status_history(session: Session, job_id: int) -> List[ActivityLog]:
    return job_activity(session, job_id, ActivityLog.ACTION_STATUS_CHANGE)


def diff_fields(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Return {key: {'before': x, 'after': y}} for keys whose value changed."""
    changes = {}
    for k, new in after.items():
        old = before.get(k)
        if old != new:
            changes[k] = {'before': old, 'after': new}
    return changes
