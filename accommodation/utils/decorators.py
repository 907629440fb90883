from functools import wraps
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from accommodation import db
from accommodation.models.user import User
from accommodation.utils.errors import Forbidden, NotFound
from accommodation.utils.permissions import can


def get_current_user(optional=False):
    """Resolve the user behind the request's access token"""
    verify_jwt_in_request(optional=optional)
    identity = get_jwt_identity()
    user = db.session.get(User, int(identity)) if identity is not None else None

    if user is None and not optional:
        raise NotFound('User not found')
    if user is not None and not user.is_active:
        raise Forbidden('Account is deactivated')

    return user


def capability_required(capability):
    """Decorator to require a capability of the signed-in user"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_current_user()
            if not can(user, capability):
                raise Forbidden('You do not have permission to perform this action')
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def roles_required(*roles):
    """Decorator to require one of the given roles"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_current_user()
            if user.role not in roles:
                raise Forbidden(f'{" or ".join(r.value.capitalize() for r in roles)} access required')
            return fn(*args, **kwargs)
        return wrapper
    return decorator
