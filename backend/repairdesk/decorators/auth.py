from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt
from repairdesk.errors import AuthorizationError


def require_roles(*roles: str):
    """Coarse gate: a valid bearer token whose ``role`` claim is one of ``roles``.

    With no roles given any authenticated caller passes.
    """
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if roles and get_jwt().get('role') not in roles:
                raise AuthorizationError('Missing role')
            return fn(*args, **kwargs)
        wrapper.required_roles = roles
        return wrapper
    return outer
