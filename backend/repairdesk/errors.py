"""Domain error types shared by services and routes.

Services raise these without knowing about HTTP; the error handler registered
in `create_app` renders each one into the standard JSON error envelope using
`status_code` and `kind`.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional


class DomainError(Exception):
    status_code = 500
    title = 'Internal Server Error'
    kind = 'InternalError'

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            'status': self.status_code,
            'title': self.title,
            'kind': self.kind,
            'detail': self.message,
        }
        if self.field:
            body['field'] = self.field
        return body


class ValidationError(DomainError):
    """Malformed or out-of-range input. Carries one entry per offending field."""
    status_code = 400
    title = 'Bad Request'
    kind = 'ValidationError'

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message, field)
        if errors is None:
            errors = [{'field': field or '', 'message': message}]
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body['errors'] = self.errors
        return body


class AuthorizationError(DomainError):
    status_code = 403
    title = 'Forbidden'
    kind = 'AuthorizationError'


class NotFoundError(DomainError):
    status_code = 404
    title = 'Not Found'
    kind = 'NotFoundError'

    def __init__(self, resource: str, identifier: Any = None, field: Optional[str] = None):
        message = f'{resource} not found' if identifier is None else f'{resource} {identifier} not found'
        super().__init__(message, field)
        self.resource = resource


class InvalidStateError(DomainError):
    status_code = 409
    title = 'Conflict'
    kind = 'InvalidStateError'


class InsufficientStockError(DomainError):
    status_code = 409
    title = 'Conflict'
    kind = 'InsufficientStockError'

    def __init__(self, part_id: int, requested: int, available: int):
        super().__init__(
            f'Insufficient stock for part {part_id}: requested {requested}, available {available}',
            field='quantity',
        )
        self.part_id = part_id
        self.requested = requested
        self.available = available


class ConflictError(DomainError):
    """Concurrent modification detected; the caller should reload and retry."""
    status_code = 409
    title = 'Conflict'
    kind = 'ConflictError'


__all__ = [
    'DomainError', 'ValidationError', 'AuthorizationError', 'NotFoundError',
    'InvalidStateError', 'InsufficientStockError', 'ConflictError',
]
