from __future__ import annotations
from typing import List, Optional, Tuple
from repairdesk.errors import ValidationError


def parse_sort(sort_expr: Optional[str], allowed: dict) -> List[Tuple[str, bool]]:
    """Split ``sort_expr`` into ``(key, descending)`` pairs.

    Tokens are comma separated API field names, optionally prefixed with '-'.
    Unknown or repeated keys raise ValidationError on the ``sort`` field.
    """
    pairs: List[Tuple[str, bool]] = []
    seen = set()
    for raw in (sort_expr or '').split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        if key not in allowed:
            raise ValidationError(f'Invalid sort field {key}', field='sort')
        if key in seen:
            raise ValidationError(f'Duplicate sort field {key}', field='sort')
        seen.add(key)
        pairs.append((key, desc))
    return pairs


def apply_multi_sort(query, sort_expr: Optional[str], allowed: dict, tie_breaker, default: Optional[str] = None):
    """Order ``query`` by ``sort_expr`` (or ``default`` when absent) plus ``tie_breaker``."""
    pairs = parse_sort(sort_expr or default, allowed)
    clauses = [allowed[key].desc() if desc else allowed[key].asc() for key, desc in pairs]
    clauses.append(tie_breaker.asc())
    return query.order_by(*clauses)
