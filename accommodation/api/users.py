import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.user import Role, User
from accommodation.schemas.auth import RoleUpdate, StatusUpdate
from accommodation.utils.decorators import roles_required, get_current_user
from accommodation.utils.errors import ValidationError
from accommodation.utils.queries import get_or_404, paginate
from accommodation.utils.sanitizers import sanitize_search_query
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)


@users_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@roles_required(Role.ADMIN)
def get_users():
    """Get all users (admin only)"""
    role = request.args.get('role', '').strip()
    search = sanitize_search_query(request.args.get('search', ''))

    query = User.query

    if role:
        if role not in {r.value for r in Role}:
            raise ValidationError.for_field('role', 'Unknown role')
        query = query.filter_by(role=Role(role))

    if search:
        query = query.filter(
            db.or_(
                User.name.ilike(f'%{search}%'),
                User.email.ilike(f'%{search}%')
            )
        )

    users, pagination = paginate(
        query.order_by(User.id),
        request.args.get('page', 1, type=int),
        min(request.args.get('per_page', 20, type=int), 100),
    )
    return jsonify({'users': [u.to_dict() for u in users], 'pagination': pagination}), 200


@users_bp.route('/<int:user_id>/role', methods=['PUT'])
@jwt_required()
@roles_required(Role.ADMIN)
def update_role(user_id):
    """Change a user's role (admin only)"""
    admin = get_current_user()
    user = get_or_404(User, user_id, 'User not found')
    data = parse_request(RoleUpdate)

    if user.id == admin.id:
        raise ValidationError.for_field('role', 'You cannot change your own role')

    user.role = Role(data.role)
    db.session.commit()
    logger.info('Admin %s set role of user %s to %s', admin.id, user.id, data.role)

    return jsonify({'message': 'Role updated', 'user': user.to_dict()}), 200


@users_bp.route('/<int:user_id>/status', methods=['PUT'])
@jwt_required()
@roles_required(Role.ADMIN)
def update_status(user_id):
    """Activate or deactivate an account (admin only)"""
    admin = get_current_user()
    user = get_or_404(User, user_id, 'User not found')
    data = parse_request(StatusUpdate)

    if user.id == admin.id:
        raise ValidationError.for_field('is_active', 'You cannot deactivate yourself')

    user.is_active = data.is_active
    db.session.commit()
    logger.info('Admin %s set user %s active=%s', admin.id, user.id, data.is_active)

    return jsonify({'message': 'Status updated', 'user': user.to_dict()}), 200
