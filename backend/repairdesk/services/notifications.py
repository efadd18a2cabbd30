"""Notification side effects.

Services emit ``NotificationEvent``s through a ``Notifier`` after their
transaction commits. Delivery is fire-and-forget: ``dispatch`` logs and
swallows any failure so a committed state change is never turned into an
error response.

The default ``LoggingNotifier`` writes the in-app message to the log and hands
events that carry an email recipient to an ``EmailSender``.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

JOB_CREATED = 'JOB_CREATED'
JOB_COMPLETED = 'JOB_COMPLETED'
LOW_STOCK = 'LOW_STOCK'


@dataclass
class NotificationEvent:
    kind: str
    title: str
    message: str
    level: str = 'info'
    job_id: Optional[int] = None
    job_number: Optional[str] = None
    part_id: Optional[int] = None
    user_id: Optional[int] = None
    email_to: Optional[str] = None
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    def notify(self, event: NotificationEvent) -> None: ...


class EmailSender(Protocol):
    def send(self, to: str, subject: str, body: str) -> None: ...


class LoggingEmailSender:
    """Records outgoing mail in the log; no transport is configured."""

    def __init__(self, sender: str = 'no-reply@localhost'):
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info('email from=%s to=%s subject=%s', self.sender, to, subject)


class LoggingNotifier:
    def __init__(self, email_sender: Optional[EmailSender] = None):
        self.email_sender = email_sender or LoggingEmailSender()

    def notify(self, event: NotificationEvent) -> None:
        log = logger.warning if event.level == 'warning' else logger.info
        log('notification kind=%s title=%s message=%s', event.kind, event.title, event.message)
        if event.email_to:
            self.email_sender.send(event.email_to, event.email_subject or event.title, event.email_body or event.message)


def dispatch(notifier: Optional[Notifier], event: NotificationEvent) -> bool:
    """Deliver ``event``; returns False (after logging) when delivery failed."""
    if notifier is None:
        return False
    try:
        notifier.notify(event)
        return True
    except Exception:
        logger.exception('notification delivery failed kind=%s job=%s part=%s', event.kind, event.job_number, event.part_id)
        return False


# ---------------- Event builders ---------------- #
def job_created_event(job, technician_id: Optional[int] = None) -> NotificationEvent:
    return NotificationEvent(
        kind=JOB_CREATED,
        title='New job',
        message=f'Repair job {job.job_number} was created',
        job_id=job.id,
        job_number=job.job_number,
        user_id=technician_id,
    )


def job_completed_event(job, customer=None) -> NotificationEvent:
    event = NotificationEvent(
        kind=JOB_COMPLETED,
        title='Job completed',
        message=f'Repair job {job.job_number} is completed',
        level='success',
        job_id=job.id,
        job_number=job.job_number,
    )
    if customer is not None and customer.email:
        event.email_to = customer.email
        event.email_subject = f'Repair job {job.job_number} completed'
        event.email_body = (
            f'Dear {customer.full_name},\n\n'
            f'Repair job {job.job_number} is completed. '
            'Please contact the shop to collect your device.'
        )
    return event


def low_stock_event(part, alert_email: Optional[str] = None) -> NotificationEvent:
    event = NotificationEvent(
        kind=LOW_STOCK,
        title='Part stock low',
        message=f'{part.part_name} has only {part.stock_qty} left',
        level='warning',
        part_id=part.id,
        data={'stock_qty': part.stock_qty, 'min_stock_qty': part.min_stock_qty},
    )
    if alert_email:
        event.email_to = alert_email
        event.email_subject = 'Part stock low'
        event.email_body = f'Part {part.part_name} has only {part.stock_qty} left. Please restock.'
    return event


__all__ = [
    'JOB_CREATED', 'JOB_COMPLETED', 'LOW_STOCK', 'NotificationEvent', 'Notifier', 'EmailSender',
    'LoggingEmailSender', 'LoggingNotifier', 'dispatch',
    'job_created_event', 'job_completed_event', 'low_stock_event',
]
