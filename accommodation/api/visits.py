import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.property import Property
from accommodation.models.visit import Visit
from accommodation.schemas.booking import VisitCreate, VisitResponse
from accommodation.scheduling.overlap import make_window, window_from_label
from accommodation.scheduling.slots import reserve_visit, transition_visit
from accommodation.services import notifications
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

visits_bp = Blueprint('visits', __name__)


def _is_party(user, visit):
    return user.is_admin() or visit.tenant_id == user.id or visit.property.owner_id == user.id


@visits_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
def get_visits():
    """Get visits for the current user"""
    user = get_current_user()

    if user.is_owner():
        # Visits for the owner's properties
        visits = Visit.query.join(Property).filter(Property.owner_id == user.id)
    else:
        visits = Visit.query.filter_by(tenant_id=user.id)
    visits = visits.order_by(Visit.visit_date.desc(), Visit.start_time.desc()).all()

    return jsonify({
        'visits': [v.to_dict(include_property=True, include_tenant=user.is_owner()) for v in visits]
    }), 200


@visits_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.REQUEST_VISIT)
def create_visit():
    """Schedule a new visit"""
    user = get_current_user()
    data = parse_request(VisitCreate)

    property = db.session.get(Property, data.property_id)
    if property is None or not property.is_listed():
        raise NotFound('Property not found')

    if data.time_slot:
        window = window_from_label(data.time_slot)
    else:
        window = make_window(data.start_time, data.end_time)

    try:
        visit = reserve_visit(property, user, data.visit_date, window,
                              time_slot=data.time_slot, notes=data.notes)
        note = notifications.queue(
            property.owner_id, 'visit_requested', 'New visit request',
            f'{user.name} wants to visit {property.title} on {data.visit_date.isoformat()} ({window})',
            actor=user, entity=visit,
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to schedule visit to property %s for user %s', property.id, user.id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({
        'message': 'Visit scheduled successfully',
        'visit': visit.to_dict(include_property=True)
    }), 201


@visits_bp.route('/<int:visit_id>', methods=['GET'])
@jwt_required()
def get_visit(visit_id):
    """Get a single visit by ID"""
    user = get_current_user()
    visit = get_or_404(Visit, visit_id, 'Visit not found')

    if not _is_party(user, visit):
        raise Forbidden('Permission denied')

    return jsonify({
        'visit': visit.to_dict(include_property=True, include_tenant=True)
    }), 200


def _change_status(visit_id, status, owner_only):
    user = get_current_user()
    visit = get_or_404(Visit, visit_id, 'Visit not found')
    data = parse_request(VisitResponse)

    is_owner = user.is_admin() or visit.property.owner_id == user.id
    if owner_only and not is_owner:
        raise Forbidden('Only the property owner can do this')
    if not owner_only and not _is_party(user, visit):
        raise Forbidden('Permission denied')

    try:
        transition_visit(visit, status, user, message=data.message)
        recipient = visit.tenant_id if user.id != visit.tenant_id else visit.property.owner_id
        note = notifications.queue(
            recipient, 'visit_responded', f'Visit {status}',
            f'The visit to {visit.property.title} on {visit.visit_date.isoformat()} is now {status}',
            actor=user, entity=visit,
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to move visit %s to %s', visit_id, status)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({
        'message': f'Visit {status}',
        'visit': visit.to_dict(include_property=True)
    }), 200


@visits_bp.route('/<int:visit_id>/confirm', methods=['POST'])
@jwt_required()
def confirm_visit(visit_id):
    """Confirm a visit (owner only)"""
    return _change_status(visit_id, 'confirmed', owner_only=True)


@visits_bp.route('/<int:visit_id>/reject', methods=['POST'])
@jwt_required()
def reject_visit(visit_id):
    """Reject a visit (owner only)"""
    return _change_status(visit_id, 'rejected', owner_only=True)


@visits_bp.route('/<int:visit_id>/complete', methods=['POST'])
@jwt_required()
def complete_visit(visit_id):
    """Mark a visit as completed (owner only)"""
    return _change_status(visit_id, 'completed', owner_only=True)


@visits_bp.route('/<int:visit_id>/cancel', methods=['POST'])
@jwt_required()
def cancel_visit(visit_id):
    """Cancel a visit (tenant or owner)"""
    return _change_status(visit_id, 'cancelled', owner_only=False)
