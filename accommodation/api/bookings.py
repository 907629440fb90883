import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.booking import Booking
from accommodation.models.property import Property
from accommodation.schemas.booking import BookingCreate, BookingStatusUpdate
from accommodation.services import notifications
from accommodation.services.bookings import create_booking, respond_to_booking
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

bookings_bp = Blueprint('bookings', __name__)


@bookings_bp.route('/book', methods=['POST'])
@jwt_required()
@capability_required(Capability.BOOK_PROPERTY)
def book_property():
    """Request a booking for a property"""
    user = get_current_user()
    data = parse_request(BookingCreate)

    property = db.session.get(Property, data.property_id)
    if property is None or not property.is_listed():
        raise NotFound('Property not found')

    try:
        booking, note = create_booking(property, user, data)
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to book property %s for user %s', data.property_id, user.id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({
        'message': 'Booking request sent',
        'booking': booking.to_dict(include_property=True)
    }), 201


@bookings_bp.route('/user/<int:user_id>', methods=['GET'])
@jwt_required()
def get_user_bookings(user_id):
    """Bookings made by a user (themselves or an admin)"""
    user = get_current_user()
    if user.id != user_id and not user.is_admin():
        raise Forbidden('Permission denied')

    bookings = Booking.query.filter_by(user_id=user_id).order_by(Booking.created_at.desc()).all()
    return jsonify({'bookings': [b.to_dict(include_property=True) for b in bookings]}), 200


@bookings_bp.route('/property/<int:property_id>', methods=['GET'])
@jwt_required()
def get_property_bookings(property_id):
    """Bookings for one property (owner only)"""
    user = get_current_user()
    property = get_or_404(Property, property_id, 'Property not found')
    if not property.can_be_managed_by(user):
        raise Forbidden('Permission denied')

    bookings = Booking.query.filter_by(property_id=property_id).order_by(Booking.created_at.desc()).all()
    return jsonify({'bookings': [b.to_dict(include_user=True) for b in bookings]}), 200


def update_booking_status(booking_id):
    """Shared by the bookings and owner blueprints"""
    user = get_current_user()
    booking = get_or_404(Booking, booking_id, 'Booking not found')
    data = parse_request(BookingStatusUpdate)

    is_owner = user.is_admin() or booking.owner_id == user.id
    tenant_cancelling = booking.user_id == user.id and data.status == 'cancelled'
    if not (is_owner or tenant_cancelling):
        raise Forbidden('Permission denied')

    try:
        note = respond_to_booking(booking, data.status, user, message=data.message)
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to update booking %s', booking_id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({
        'message': f'Booking {booking.status}',
        'booking': booking.to_dict(include_user=True, include_property=True)
    }), 200


@bookings_bp.route('/<int:booking_id>/status', methods=['PUT'])
@jwt_required()
def update_status(booking_id):
    """Confirm, reject, cancel or complete a booking"""
    return update_booking_status(booking_id)
