from __future__ import annotations
from flask import Blueprint, request
from sqlalchemy import select
from repairdesk.decorators.auth import require_roles
from repairdesk.utils.filters import parse_bool
from repairdesk.errors import ValidationError
from repairdesk.models.catalog import Brand, MinerModel, WarrantyProfile
from repairdesk import get_db

cat_bp = Blueprint('catalog', __name__)


@cat_bp.get('/models')
@require_roles()
def list_models():
    session = get_db()
    q = select(MinerModel).join(Brand, Brand.id == MinerModel.brand_id)
    if brand_id := request.args.get('brandId'):
        try:
            q = q.where(MinerModel.brand_id == int(brand_id))
        except ValueError:
            raise ValidationError('brandId invalid', field='brandId') from None
    rows = session.execute(q.order_by(Brand.name.asc(), MinerModel.model_name.asc())).scalars().all()
    return {'data': [_model_json(m) for m in rows], 'total': len(rows)}


@cat_bp.get('/warranties')
@require_roles()
def list_warranties():
    session = get_db()
    try:
        include_inactive = parse_bool(request.args.get('includeInactive', 'false'))
    except ValueError:
        raise ValidationError('includeInactive invalid', field='includeInactive') from None
    q = select(WarrantyProfile)
    if not include_inactive:
        q = q.where(WarrantyProfile.is_active.is_(True))
    rows = session.execute(q.order_by(WarrantyProfile.duration_days.asc(), WarrantyProfile.id.asc())).scalars().all()
    return {'data': [_warranty_json(w) for w in rows], 'total': len(rows)}


def _model_json(m: MinerModel):
    return {
        'id': m.id,
        'brandId': m.brand_id,
        'brand': m.brand.name if m.brand else None,
        'modelName': m.model_name,
        'hashrate': m.hashrate,
        'powerUsage': m.power_usage,
        'description': m.description,
    }


def _warranty_json(w: WarrantyProfile):
    return {
        'id': w.id,
        'name': w.name,
        'durationDays': w.duration_days,
        'description': w.description,
        'terms': w.terms,
        'isActive': w.is_active,
    }
