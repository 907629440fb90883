import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.communication_log import CommunicationLog
from accommodation.models.user import User
from accommodation.schemas.support import EmailSend, WhatsAppSend
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.email import send_support_email
from accommodation.utils.errors import ValidationError
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404, paginate
from accommodation.utils.validators import format_phone_number, parse_request, validate_email
from accommodation.utils.whatsapp import send_whatsapp

logger = logging.getLogger(__name__)

communications_bp = Blueprint('communications', __name__)


@communications_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.SEND_COMMUNICATIONS)
def list_communications():
    """Communication log, filterable by ``type`` and ``user_id``"""
    query = CommunicationLog.query
    if request.args.get('type'):
        query = query.filter_by(type=request.args['type'])
    if request.args.get('user_id', type=int):
        query = query.filter_by(user_id=request.args.get('user_id', type=int))

    items, pagination = paginate(
        query.order_by(CommunicationLog.created_at.desc(), CommunicationLog.id.desc()),
        request.args.get('page', 1, type=int),
        min(request.args.get('per_page', 50, type=int), 200),
    )
    return jsonify({'communications': [c.to_dict() for c in items], 'pagination': pagination}), 200


@communications_bp.route('/email', methods=['POST'])
@jwt_required()
@capability_required(Capability.SEND_COMMUNICATIONS)
def send_email_message():
    sender = get_current_user()
    data = parse_request(EmailSend)

    recipient = get_or_404(User, data.user_id, 'User not found') if data.user_id else None
    address = recipient.email if recipient else data.email.lower()
    if not validate_email(address):
        raise ValidationError.for_field('email', 'Invalid email address')

    sent, reference = send_support_email(address, data.subject, data.message)
    entry = CommunicationLog.log('email', user_id=recipient.id if recipient else None,
                                 subject=data.subject, content=data.message,
                                 status='sent' if sent else 'failed', related_to='support',
                                 channel_id=reference if sent else None,
                                 details={'to': address, 'sent_by': sender.id})
    db.session.commit()

    return jsonify({'sent': sent, 'communication': entry.to_dict()}), 200


@communications_bp.route('/whatsapp', methods=['POST'])
@jwt_required()
@capability_required(Capability.SEND_COMMUNICATIONS)
def send_whatsapp_message():
    sender = get_current_user()
    data = parse_request(WhatsAppSend)

    recipient = get_or_404(User, data.user_id, 'User not found') if data.user_id else None
    phone = recipient.phone if recipient else data.phone
    if not phone:
        raise ValidationError.for_field('phone', 'Recipient has no phone number')

    sent, reference = send_whatsapp(format_phone_number(phone), data.message)
    details = {'to': phone, 'sent_by': sender.id}
    if not sent:
        details['error'] = reference
    entry = CommunicationLog.log('whatsapp', user_id=recipient.id if recipient else None,
                                 content=data.message, status='sent' if sent else 'failed',
                                 related_to='support', channel_id=reference if sent else None,
                                 details=details)
    db.session.commit()

    return jsonify({'sent': sent, 'communication': entry.to_dict()}), 200
