import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.analytics.collect import dashboard_summary, owner_portfolio, property_analytics
from accommodation.api.bookings import update_booking_status
from accommodation.models.property import Property
from accommodation.schemas.property import VisibilityUpdate
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import Forbidden, ValidationError
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

owner_bp = Blueprint('owner', __name__)


def _managed_property(property_id, user):
    property = get_or_404(Property, property_id, 'Property not found')
    if not property.can_be_managed_by(user):
        raise Forbidden('Permission denied')
    return property


@owner_bp.route('/analytics/<int:property_id>', methods=['GET'])
@jwt_required()
@capability_required(Capability.VIEW_ANALYTICS)
def get_property_analytics(property_id):
    """Analytics for one of the owner's properties"""
    user = get_current_user()
    property = _managed_property(property_id, user)
    return jsonify(property_analytics(property)), 200


@owner_bp.route('/portfolio', methods=['GET'])
@jwt_required()
@capability_required(Capability.VIEW_ANALYTICS)
def get_portfolio():
    """Totals across the owner's active listings"""
    user = get_current_user()
    return jsonify(owner_portfolio(user).to_dict()), 200


@owner_bp.route('/dashboard-summary', methods=['GET'])
@jwt_required()
@capability_required(Capability.VIEW_ANALYTICS)
def get_dashboard_summary():
    user = get_current_user()
    return jsonify(dashboard_summary(user)), 200


@owner_bp.route('/property/<int:property_id>/visibility', methods=['PUT'])
@jwt_required()
@capability_required(Capability.LIST_PROPERTY)
def set_visibility(property_id):
    """Show or hide a listing from tenants"""
    user = get_current_user()
    property = _managed_property(property_id, user)
    data = parse_request(VisibilityUpdate)

    if not property.set_visibility(data.visible):
        raise ValidationError.for_field('visible', 'Archived properties cannot be shown again')
    db.session.commit()

    logger.info('Property %s visibility set to %s by %s', property.id, property.listing_state.value, user.id)
    return jsonify({
        'message': 'Property visibility updated',
        'property': property.to_dict()
    }), 200


@owner_bp.route('/booking/<int:booking_id>/respond', methods=['PUT'])
@jwt_required()
@capability_required(Capability.RESPOND_TO_REQUESTS)
def respond_to_booking(booking_id):
    """Owner's answer to a booking request"""
    return update_booking_status(booking_id)
