"""Job number generation: ``{prefix}{YYYY}-{NNNN}``, e.g. RJ2025-0001.

Numbering restarts at 0001 each calendar year. The next number is one past the
highest issued for the current year; the unique index on ``jobs.job_number``
is the final guard and callers retry on collision.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from repairdesk.models.job import Job

DEFAULT_PREFIX = 'RJ'


def format_job_number(prefix: str, year: int, seq: int) -> str:
    return f'{prefix}{year}-{seq:04d}'


def next_job_number(session: Session, prefix: str = DEFAULT_PREFIX, now: Optional[datetime] = None) -> str:
    year = (now or datetime.now(timezone.utc)).year
    year_prefix = f'{prefix}{year}-'
    # Longer suffix first, so RJ2025-10000 sorts above RJ2025-9999
    latest = session.execute(
        select(Job.job_number)
        .where(Job.job_number.like(f'{year_prefix}%'))
        .order_by(func.length(Job.job_number).desc(), Job.job_number.desc())
        .limit(1)
    ).scalar_one_or_none()
    suffix = latest[len(year_prefix):] if latest else ''
    last = int(suffix) if suffix.isdigit() else 0
    return format_job_number(prefix, year, last + 1)
