import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.enquiry import Enquiry, EnquiryReply
from accommodation.models.property import Property
from accommodation.schemas.review import EnquiryCreate, EnquiryReplyCreate
from accommodation.services import notifications
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

enquiries_bp = Blueprint('enquiries', __name__)

@enquiries_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.SEND_ENQUIRY)
def submit_enquiry():
    """Submit a property enquiry"""
    user = get_current_user()
    data = parse_request(EnquiryCreate)

    property = db.session.get(Property, data.property_id)
    if property is None or not property.is_listed():
        raise NotFound('Property not found')

    try:
        enquiry = Enquiry(
            property_id=property.id,
            user_id=user.id,
            owner_id=property.owner_id,
            subject=data.subject,
            message=data.message,
        )
        db.session.add(enquiry)
        db.session.flush()
        property.increment('enquiry_count')

        note = notifications.queue(
            property.owner_id, 'enquiry_created', f'New enquiry: {data.subject}',
            f'{user.name} asked about {property.title}', actor=user, entity=enquiry,
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to submit enquiry for property %s', data.property_id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({
        'message': 'Enquiry submitted successfully',
        'enquiry': enquiry.to_dict()
    }), 201

@enquiries_bp.route('/user', methods=['GET'])
@jwt_required()
def get_user_enquiries():
    """Enquiries sent by the signed-in user"""
    user = get_current_user()
    enquiries = Enquiry.query.filter_by(user_id=user.id).order_by(Enquiry.created_at.desc()).all()
    return jsonify({'enquiries': [e.to_dict() for e in enquiries]}), 200

@enquiries_bp.route('/owner', methods=['GET'])
@jwt_required()
@capability_required(Capability.RESPOND_TO_REQUESTS)
def get_owner_enquiries():
    """Enquiries received for the signed-in owner's properties"""
    user = get_current_user()
    query = Enquiry.query if user.is_admin() else Enquiry.query.filter_by(owner_id=user.id)
    enquiries = query.order_by(Enquiry.created_at.desc()).all()
    return jsonify({'enquiries': [e.to_dict() for e in enquiries]}), 200

@enquiries_bp.route('/<int:enquiry_id>/replies', methods=['POST'])
@jwt_required()
def reply_to_enquiry(enquiry_id):
    """Reply on an enquiry thread (the enquirer or the owner)"""
    user = get_current_user()
    enquiry = get_or_404(Enquiry, enquiry_id, 'Enquiry not found')
    data = parse_request(EnquiryReplyCreate)

    if user.id not in (enquiry.user_id, enquiry.owner_id) and not user.is_admin():
        raise Forbidden('Permission denied')

    try:
        db.session.add(EnquiryReply(enquiry_id=enquiry.id, sender_id=user.id, message=data.message))
        if data.close:
            enquiry.status = 'closed'
        elif user.id != enquiry.user_id:
            enquiry.status = 'replied'

        recipient = enquiry.user_id if user.id != enquiry.user_id else enquiry.owner_id
        note = notifications.queue(
            recipient, 'enquiry_replied', f'Re: {enquiry.subject}', data.message[:200],
            actor=user, entity=enquiry,
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to reply to enquiry %s', enquiry_id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    return jsonify({'message': 'Reply sent', 'enquiry': enquiry.to_dict()}), 201
