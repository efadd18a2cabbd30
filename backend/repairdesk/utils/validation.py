"""Reusable validation helpers shared by routes and services.

Wraps pydantic payload parsing and status lookups so that every input problem
surfaces as the domain ``ValidationError`` (400) with consistent field detail.
"""
from __future__ import annotations
from typing import Iterable, Type, TypeVar, Any
from pydantic import BaseModel, ValidationError as PydanticValidationError

from repairdesk.errors import ValidationError

P = TypeVar('P', bound=BaseModel)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if not isinstance(p, int)]
    return '.'.join(parts) if parts else 'body'


def parse_payload(schema: Type[P], data: Any) -> P:
    """Validate ``data`` against ``schema``.

    Returns the parsed model or raises ValidationError listing every failing
    field; the first failure is also exposed as ``field``/``detail``.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('request body must be a JSON object', field='body')
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        errors = [{'field': _field_name(err['loc']), 'message': err['msg']} for err in exc.errors()]
        first = errors[0]
        raise ValidationError(f"{first['field']}: {first['message']}", field=first['field'], errors=errors) from None


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises ValidationError.
    """
    if new_status not in allowed:
        raise ValidationError(f'{field_name} invalid', field=field_name)
    return new_status


__all__ = ['parse_payload', 'validate_status']
