from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, JSON, DateTime, ForeignKey, func

from .authz import Base  # reuse same metadata


class ActivityLog(Base):
    """Append-only audit trail entry for a job.

    Status changes are stored here too (action JOB.STATUS.CHANGE with
    from_status / to_status / note in meta), so the status history of a job is
    the ordered subset of its entries with that action.
    """
    __tablename__ = 'activity_logs'
    ACTION_CREATE = 'JOB.CREATE'
    ACTION_UPDATE = 'JOB.UPDATE'
    ACTION_STATUS_CHANGE = 'JOB.STATUS.CHANGE'
    ACTION_ASSIGN = 'JOB.ASSIGN'
    ACTION_RECORD_ADD = 'JOB.RECORD.ADD'
    ACTION_PART_ADD = 'JOB.PART.ADD'
    ACTION_PART_REMOVE = 'JOB.PART.REMOVE'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey('jobs.id'), nullable=False, index=True)
    actor_user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
