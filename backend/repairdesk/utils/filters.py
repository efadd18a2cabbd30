from __future__ import annotations
from typing import Any, Dict
from repairdesk.errors import ValidationError


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    val = str(raw).strip().lower()
    if val in ('1', 'true', 'yes'):
        return True
    if val in ('0', 'false', 'no', ''):
        return False
    raise ValueError(raw)


def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]):
    """Generic filter builder.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': type/func, 'validate': callable(optional) } }
    """
    for name, meta in specs.items():
        if name not in params or params[name] is None:
            continue
        val = params[name]
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                raise ValidationError(f'{name} invalid', field=name) from None
        if 'validate' in meta and not meta['validate'](val):
            raise ValidationError(f'{name} invalid', field=name)
        query = meta['op'](query, val)
    return query
