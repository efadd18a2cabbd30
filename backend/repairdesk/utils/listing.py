from __future__ import annotations
from typing import Callable, Iterable, Optional, Tuple
from flask import request, make_response, jsonify
from sqlalchemy.orm import Query
from repairdesk.config.pagination import normalize_pagination
from repairdesk.errors import ValidationError
import hashlib
import json
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime

TIMESTAMP_TOLERANCE = timedelta(seconds=1)


def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds (microseconds removed)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace('+00:00', 'Z')


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'), request.args.get('page'))
    except ValueError as e:
        raise ValidationError(str(e), field='limit') from None
    total = q.order_by(None).count()
    return q.offset(offset).limit(limit), total, limit, offset


def content_digest(payload) -> str:
    """Short stable digest of a JSON-able payload."""
    blob = json.dumps(payload, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(blob.encode()).hexdigest()[:16]


def compute_etag(ids: Iterable[int], total: int, limit: int, offset: int, latest_ts: Optional[str] = '', fingerprint: str = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{latest_ts or ''}|{fingerprint}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }


def _http_date(dt: datetime) -> str:
    """Return RFC1123 HTTP-date string in GMT."""
    return format_datetime(canonicalize_timestamp(dt), usegmt=True)


def _set_validators(resp, etag_value: str, latest_c: Optional[datetime]):
    resp.headers['ETag'] = etag_value
    if latest_c:
        resp.headers['Last-Modified'] = _http_date(latest_c)
        # Canonical ISO copy for clients that prefer it
        resp.headers['X-Last-Modified-ISO'] = _iso(latest_c)
    return resp


def make_cached_list_response(rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    ids = [r.get('id') for r in rows]
    latest_ts_c = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    # Keep ETag seed stable using ISO canonical form
    etag = compute_etag(ids, total, limit, offset, _iso(latest_ts_c) if latest_ts_c else '', content_digest(rows))
    resp = make_response(build_list_payload(rows, total, limit, offset))
    _set_validators(resp, etag, latest_ts_c)
    return resp, etag


def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    if not header_val:
        return None
    # Try ISO 8601 first
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
    except ValueError:
        dt = None
    if dt is None:
        # Try HTTP-date (RFC 1123)
        try:
            dt = parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
    if dt and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def handle_conditional(etag_value: str, latest_ts: Optional[datetime]):
    """Evaluate conditional request headers.

    Precedence: If-None-Match over If-Modified-Since (per RFC 9110 semantics).
    Returns an empty 304 response object if conditions satisfied, else None.
    """
    latest_c = canonicalize_timestamp(latest_ts) if latest_ts else None
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag_value:
        return _set_validators(make_response('', 304), etag_value, latest_c)
    # Only evaluate If-Modified-Since if If-None-Match was not a match / absent
    ims_raw = request.headers.get('If-Modified-Since')
    if ims_raw and latest_c:
        ims_dt = _parse_if_modified_since(ims_raw)
        if ims_dt and latest_c <= canonicalize_timestamp(ims_dt) + TIMESTAMP_TOLERANCE:
            return _set_validators(make_response('', 304), etag_value, latest_c)
    return None


def paginated_response(q: Query, to_json: Callable, latest_attr: str = 'updated_at'):
    """Paginate ``q`` and answer GET/HEAD with list payload plus cache validators."""
    paged_q, total, limit, offset = apply_pagination(q)
    rows = paged_q.all()
    rows_json = [to_json(r) for r in rows]
    stamps = [getattr(r, latest_attr) for r in rows if getattr(r, latest_attr, None) is not None]
    latest_ts = max(stamps) if stamps else None
    resp, etag = make_cached_list_response(rows_json, total, limit, offset, latest_ts)
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp


def single_resource_response(obj_id: int, body: dict, latest_ts: Optional[datetime] = None):
    """Single-object GET/HEAD with ETag / Last-Modified validators."""
    latest_c = canonicalize_timestamp(latest_ts) if latest_ts else None
    etag = compute_etag([obj_id], 1, 1, 0, _iso(latest_c) if latest_c else '', content_digest(body))
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    resp = make_response(jsonify(body))
    _set_validators(resp, etag, latest_c)
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp
