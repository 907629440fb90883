import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from accommodation import db
from accommodation.models.communication_log import CommunicationLog
from accommodation.models.expert import Expert, ExpertAvailability, ExpertConsultation
from accommodation.models.user import User
from accommodation.schemas.expert import (
    ConsultationCreate,
    ConsultationRating,
    ConsultationStatusUpdate,
    ExpertProfileUpdate,
)
from accommodation.scheduling.overlap import make_window
from accommodation.scheduling.slots import reserve_consultation, transition_consultation
from accommodation.services import notifications
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.email import send_consultation_email
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault, ValidationError
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

experts_bp = Blueprint('experts', __name__)

# Statuses the client who booked may set themselves
CLIENT_STATUSES = {'cancelled', 'scheduled'}


def _email_party(recipient, consultation, expert_name):
    """Email a party after the consultation change is committed.

    Delivery problems are logged, never raised: the booking already stands.
    """
    try:
        sent, reference = send_consultation_email(recipient, consultation, expert_name)
        CommunicationLog.log('consultation', user_id=recipient.id, subject='Consultation update',
                             status='sent' if sent else 'skipped', related_to=consultation.status,
                             reference=consultation, channel_id=reference if sent else None)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning('Consultation email to user %s failed', recipient.id, exc_info=True)


@experts_bp.route('/profile', methods=['PUT'])
@jwt_required()
@capability_required(Capability.MANAGE_EXPERT_PROFILE)
def update_profile():
    """Create or update the signed-in expert's profile and weekly availability"""
    user = get_current_user()
    data = parse_request(ExpertProfileUpdate)
    try:
        expert = Expert.query.filter_by(user_id=user.id).first()
        created = expert is None
        if created:
            expert = Expert(user_id=user.id)
            db.session.add(expert)

        changes = data.provided()
        slots = changes.pop('availability', None)
        for field, value in changes.items():
            if value is not None:
                setattr(expert, field, value)

        if slots is not None:
            availability = []
            for slot in data.availability:
                window = make_window(slot.start_time, slot.end_time)
                availability.append(ExpertAvailability(day_of_week=slot.day_of_week,
                                                       start_time=window.start, end_time=window.end))
            expert.availability = availability

        CommunicationLog.log('expert_profile', user_id=user.id, direction='inbound',
                             subject='Profile created' if created else 'Profile updated',
                             related_to='profile', details={'fields': sorted(data.provided())})
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to update expert profile of user %s', user.id)
        raise ServerFault()

    return jsonify({'message': 'Profile saved', 'expert': expert.to_dict()}), 201 if created else 200


@experts_bp.route('/', methods=['GET'], strict_slashes=False)
def list_experts():
    """Experts currently taking consultations, optionally filtered by expertise"""
    expertise = request.args.get('expertise', '').strip().lower()
    experts = Expert.query.join(User, Expert.user_id == User.id).filter(
        Expert.is_available.is_(True), User.is_active.is_(True)
    ).order_by(Expert.id).all()

    if expertise:
        experts = [e for e in experts if any(expertise in (x or '').lower() for x in e.expertise or [])]

    return jsonify({'experts': [e.to_dict() for e in experts]}), 200


@experts_bp.route('/<int:user_id>', methods=['GET'])
def get_expert(user_id):
    expert = Expert.query.filter_by(user_id=user_id).first()
    if expert is None:
        raise NotFound('Expert not found')
    return jsonify({'expert': expert.to_dict()}), 200


@experts_bp.route('/consultations', methods=['POST'])
@jwt_required()
@capability_required(Capability.BOOK_CONSULTATION)
def book_consultation():
    """Book a consultation slot with an expert"""
    user = get_current_user()
    data = parse_request(ConsultationCreate)

    expert = get_or_404(Expert, data.expert_id, 'Expert not found')
    if expert.user_id == user.id:
        raise ValidationError.for_field('expert_id', 'You cannot book a consultation with yourself')
    window = make_window(data.start_time, data.end_time)

    try:
        consultation = reserve_consultation(expert, user, data.consultation_date, window, notes=data.notes)
        note = notifications.queue(
            expert.user_id, 'new_consultation', 'New consultation booked',
            f'{user.name} booked {data.consultation_date.isoformat()} {window}',
            actor=user, entity=consultation, priority='high',
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to book consultation with expert %s', data.expert_id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    _email_party(expert.user, consultation, expert.user.name)
    return jsonify({
        'message': 'Consultation booked',
        'consultation': consultation.to_dict()
    }), 201


@experts_bp.route('/consultations', methods=['GET'])
@jwt_required()
def list_consultations():
    """Consultations the user booked, plus those booked with them as an expert"""
    user = get_current_user()
    expert = Expert.query.filter_by(user_id=user.id).first()

    clauses = [ExpertConsultation.user_id == user.id]
    if expert is not None:
        clauses.append(ExpertConsultation.expert_id == expert.id)

    consultations = ExpertConsultation.query.filter(or_(*clauses)).order_by(
        ExpertConsultation.consultation_date.desc(), ExpertConsultation.start_time.desc()
    ).all()
    return jsonify({'consultations': [c.to_dict() for c in consultations]}), 200


@experts_bp.route('/consultations/<int:consultation_id>/status', methods=['PUT'])
@jwt_required()
def update_consultation_status(consultation_id):
    user = get_current_user()
    consultation = get_or_404(ExpertConsultation, consultation_id, 'Consultation not found')
    data = parse_request(ConsultationStatusUpdate)

    is_expert = user.is_admin() or consultation.expert.user_id == user.id
    is_client = consultation.user_id == user.id
    if not (is_expert or (is_client and data.status in CLIENT_STATUSES)):
        raise Forbidden('Not authorized to update this consultation')

    try:
        transition_consultation(consultation, data.status, user, reason=data.cancellation_reason)
        if is_expert and data.meeting_link:
            consultation.meeting_link = data.meeting_link
            consultation.meeting_platform = data.meeting_platform or 'other'

        recipient = consultation.user if user.id != consultation.user_id else consultation.expert.user
        note = notifications.queue(
            recipient.id, 'consultation_updated', f'Consultation {data.status}',
            f'Consultation on {consultation.consultation_date.isoformat()} {consultation.window} is now {data.status}',
            actor=user, entity=consultation,
        )
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to update consultation %s', consultation_id)
        raise ServerFault()

    notifications.publish(get_notifier(), note)
    _email_party(recipient, consultation, consultation.expert.user.name)
    return jsonify({'message': 'Consultation updated', 'consultation': consultation.to_dict()}), 200


@experts_bp.route('/consultations/<int:consultation_id>/rate', methods=['POST'])
@jwt_required()
def rate_consultation(consultation_id):
    """Rate a completed consultation (once, by the client)"""
    user = get_current_user()
    consultation = get_or_404(ExpertConsultation, consultation_id, 'Consultation not found')
    data = parse_request(ConsultationRating)

    if consultation.user_id != user.id:
        raise Forbidden('Only the client can rate a consultation')
    if consultation.status != 'completed':
        raise ValidationError.for_field('status', 'Only completed consultations can be rated')
    if consultation.rating is not None:
        raise ValidationError.for_field('rating', 'Consultation already rated')

    consultation.rating = data.rating
    consultation.review = data.review
    Expert.query.filter_by(id=consultation.expert_id).update({
        Expert.rating_total: Expert.rating_total + data.rating,
        Expert.rating_count: Expert.rating_count + 1,
    }, synchronize_session=False)
    db.session.commit()

    return jsonify({'message': 'Thanks for your rating', 'consultation': consultation.to_dict()}), 200
