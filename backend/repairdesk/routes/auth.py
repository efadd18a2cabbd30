from __future__ import annotations
from flask import Blueprint
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt
from repairdesk.errors import NotFoundError
from repairdesk.models.authz import User
from repairdesk import get_db

auth_bp = Blueprint('auth', __name__)


@auth_bp.get('/me')
@jwt_required()
def me():
    # Identity stored as string, cast back to int for DB lookup
    user_id = int(get_jwt_identity())
    user = get_db().get(User, user_id)
    if not user:
        raise NotFoundError('User', user_id)
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'tokenRole': get_jwt().get('role'),
        'isActive': user.is_active,
        'locale': user.locale,
    }
