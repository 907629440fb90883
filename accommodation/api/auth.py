import logging
from datetime import datetime
from flask import Blueprint, jsonify
from flask_jwt_extended import create_access_token, jwt_required
from accommodation import db
from accommodation.models.communication_log import CommunicationLog
from accommodation.models.user import User, Role
from accommodation.models.property import Property
from accommodation.models.review import Review
from accommodation.schemas.auth import (
    AccountDelete, ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest,
)
from accommodation.utils.decorators import get_current_user
from accommodation.utils.email import send_welcome_email
from accommodation.utils.errors import ApiError, Forbidden, ServerFault, ValidationError
from accommodation.utils.validators import format_phone_number, parse_request

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _token_for(user):
    # Identities must be strings
    return create_access_token(identity=str(user.id))


def _welcome(user):
    # Sent once the account exists; a mail outage must not undo the sign-up
    try:
        sent, reference = send_welcome_email(user)
        CommunicationLog.log('email', user_id=user.id, subject='Welcome to Accommodation Finder',
                             status='sent' if sent else 'skipped', related_to='registration',
                             reference=user, channel_id=reference if sent else None)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning('Welcome email to user %s failed', user.id, exc_info=True)


@auth_bp.route('/register', methods=['POST'])
def register():
    """Register a new user"""
    data = parse_request(RegisterRequest)
    try:
        if User.query.filter_by(email=data.email).first():
            raise ValidationError.for_field('email', 'Email already registered')

        user = User(
            email=data.email,
            name=data.name,
            phone=format_phone_number(data.phone) if data.phone else None,
            role=Role(data.role),
            occupation=data.occupation,
            business_name=data.business_name,
        )
        user.set_password(data.password)
        db.session.add(user)
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Registration failed for %s', data.email)
        raise ServerFault()

    logger.info('Registered %s account %s', user.role.value, user.id)
    _welcome(user)
    return jsonify({
        'message': 'Registration successful',
        'token': _token_for(user),
        'user': user.to_dict(include_private=True)
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login user"""
    data = parse_request(LoginRequest)
    user = User.query.filter_by(email=data.email).first()

    if not user or not user.check_password(data.password):
        raise ValidationError.for_field('password', 'Invalid email or password')

    if not user.is_active:
        raise Forbidden('Account is deactivated')

    user.last_login_at = datetime.utcnow()
    db.session.commit()

    return jsonify({
        'message': 'Login successful',
        'token': _token_for(user),
        'user': user.to_dict(include_private=True)
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_me():
    """Get the signed-in user's profile"""
    return jsonify({'user': get_current_user().to_dict(include_private=True)}), 200


@auth_bp.route('/me', methods=['PUT'])
@jwt_required()
def update_me():
    """Update profile fields and notification preferences"""
    user = get_current_user()
    data = parse_request(ProfileUpdate)
    try:
        for field, value in data.provided().items():
            if value is None and field not in ('phone', 'occupation', 'business_name'):
                continue
            if field == 'phone' and value:
                value = format_phone_number(value)
            setattr(user, field, value)
        db.session.commit()
        return jsonify({'message': 'Profile updated', 'user': user.to_dict(include_private=True)}), 200

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to update profile of user %s', user.id)
        raise ServerFault()


@auth_bp.route('/me', methods=['DELETE'])
@jwt_required()
def delete_me():
    """Deactivate the signed-in account.

    The row is kept so bookings and logs stay attributable. An owner's listings
    are hidden and the user's reviews archived.
    """
    user = get_current_user()
    data = parse_request(AccountDelete)

    if not user.check_password(data.password):
        raise ValidationError.for_field('password', 'Password is incorrect')

    try:
        user.is_active = False
        hidden = 0
        if user.is_owner():
            for prop in Property.query.filter_by(owner_id=user.id).all():
                if prop.set_visibility(False):
                    hidden += 1
        for review in Review.query.filter_by(tenant_id=user.id).all():
            review.archive()
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to deactivate user %s', user.id)
        raise ServerFault()

    logger.info('User %s deactivated their account, %s listings hidden', user.id, hidden)
    return jsonify({'message': 'Account deleted successfully'}), 200


@auth_bp.route('/change-password', methods=['PUT'])
@jwt_required()
def change_password():
    """Change the signed-in user's password"""
    user = get_current_user()
    data = parse_request(ChangePasswordRequest)

    if not user.check_password(data.current_password):
        raise ValidationError.for_field('current_password', 'Current password is incorrect')

    user.set_password(data.new_password)
    db.session.commit()
    return jsonify({'message': 'Password changed successfully'}), 200
