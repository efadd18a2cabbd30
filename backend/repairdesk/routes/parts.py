from __future__ import annotations
from flask import Blueprint, request, current_app
from repairdesk.decorators.auth import require_roles
from repairdesk.constants.permissions import ROLE_ADMIN, ROLE_MANAGER
from repairdesk.utils.listing import paginated_response, single_resource_response
from repairdesk.utils.sorting import apply_multi_sort
from repairdesk.utils.filters import parse_bool
from repairdesk.utils.validation import parse_payload
from repairdesk.errors import ValidationError
from repairdesk.services import inventory as inventory_service
from repairdesk.services.policy import current_actor
from repairdesk.schemas.inventory import PartCreate, PartUpdate, StockAdjustment
from repairdesk.models.part import Part
from repairdesk import get_db

parts_bp = Blueprint('parts', __name__)

SORT_FIELDS = {
    'partNumber': Part.part_number,
    'partName': Part.part_name,
    'stockQty': Part.stock_qty,
    'updatedAt': Part.updated_at,
    'id': Part.id,
}


@parts_bp.route('', methods=['GET', 'HEAD'])
@require_roles()
def list_parts():
    session = get_db()
    try:
        low_stock = parse_bool(request.args.get('lowStock', 'false'))
    except ValueError:
        raise ValidationError('lowStock invalid', field='lowStock') from None
    q = inventory_service.part_query(session, search=request.args.get('search'), low_stock=low_stock)
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, Part.id, default='partName')
    return paginated_response(q, _part_json)


@parts_bp.get('/low-stock')
@require_roles()
def low_stock_parts():
    session = get_db()
    rows = inventory_service.part_query(session, low_stock=True).order_by(Part.stock_qty.asc(), Part.id.asc()).all()
    return {'data': [_part_json(p) for p in rows], 'total': len(rows)}


@parts_bp.route('/<int:part_id>', methods=['GET', 'HEAD'])
@require_roles()
def get_part(part_id: int):
    p = inventory_service.load_part(get_db(), part_id)
    return single_resource_response(p.id, _part_json(p), p.updated_at)


@parts_bp.post('')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def create_part():
    payload = parse_payload(PartCreate, request.get_json(silent=True))
    part = inventory_service.create_part(get_db(), current_actor(), payload)
    return _part_json(part), 201


@parts_bp.put('/<int:part_id>')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def update_part(part_id: int):
    payload = parse_payload(PartUpdate, request.get_json(silent=True))
    part = inventory_service.update_part(get_db(), current_actor(), part_id, payload)
    return _part_json(part)


@parts_bp.put('/<int:part_id>/adjust')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def adjust_part(part_id: int):
    payload = parse_payload(StockAdjustment, request.get_json(silent=True))
    part = inventory_service.adjust_stock(
        get_db(), current_actor(), part_id, payload,
        notifier=current_app.extensions.get('notifier'),
        alert_email=current_app.config.get('LOW_STOCK_ALERT_EMAIL'),
    )
    return _part_json(part)


def _part_json(p: Part):
    return {
        'id': p.id,
        'partNumber': p.part_number,
        'partName': p.part_name,
        'stockQty': p.stock_qty,
        'minStockQty': p.min_stock_qty,
        'unitPrice': str(p.unit_price),
        'description': p.description,
        'lowStock': p.is_low_stock,
    }
