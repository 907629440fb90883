"""
Reserving and moving appointments through their lifecycle.

The conflict read and the insert run in the caller's transaction. The
resource row (property or expert) is locked first so concurrent requests for
the same resource queue up behind each other; the unique constraint on
``active_slot`` backs this up on databases that ignore row locks.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from accommodation import db
from accommodation.models.expert import CONSULTATION_TRANSITIONS, Expert, ExpertConsultation
from accommodation.models.property import Property
from accommodation.models.visit import VISIT_TRANSITIONS, Visit
from accommodation.scheduling.overlap import (
    CONSULTATION_BLOCKING_STATUSES,
    VISIT_BLOCKING_STATUSES,
    ensure_available,
)
from accommodation.utils.errors import SlotUnavailable, ValidationError
from accommodation.utils.logging import with_context

logger = logging.getLogger(__name__)


def _lock(model, resource_id):
    """SELECT ... FOR UPDATE on the resource row"""
    return model.query.filter_by(id=resource_id).with_for_update().one()


def _held_visits(property_id, visit_date):
    return Visit.query.filter(
        Visit.property_id == property_id,
        Visit.visit_date == visit_date,
        Visit.status.in_(sorted(VISIT_BLOCKING_STATUSES)),
    ).all()


def _held_consultations(expert_id, consultation_date):
    return ExpertConsultation.query.filter(
        ExpertConsultation.expert_id == expert_id,
        ExpertConsultation.consultation_date == consultation_date,
        ExpertConsultation.status.in_(sorted(CONSULTATION_BLOCKING_STATUSES)),
    ).all()


def _flush_slot(log, window):
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        log.warning('Lost the race for the %s slot', window)
        raise SlotUnavailable()


def reserve_visit(property, tenant, visit_date, window, time_slot=None, notes=None):
    """Create a pending visit after checking the property's calendar for that day"""
    log = with_context(logger, property_id=property.id, tenant_id=tenant.id, date=visit_date)

    _lock(Property, property.id)
    ensure_available(window, _held_visits(property.id, visit_date), VISIT_BLOCKING_STATUSES)

    visit = Visit(
        property_id=property.id,
        tenant_id=tenant.id,
        visit_date=visit_date,
        start_time=window.start,
        end_time=window.end,
        time_slot=time_slot or str(window),
        notes=notes,
        status='pending',
    )
    visit.sync_active_slot()
    db.session.add(visit)
    _flush_slot(log, window)

    log.info('Visit %s requested for %s', visit.id, window)
    return visit


def _check_expert_hours(expert, consultation_date, window):
    if not expert.is_available:
        raise ValidationError.for_field('expert_id', 'Expert is not taking consultations')
    if not expert.covers(consultation_date, window):
        raise SlotUnavailable(f'The expert is not available {window} on that day')


def reserve_consultation(expert, user, consultation_date, window, notes=None):
    """Book a consultation with an expert; the fee is captured at booking time"""
    log = with_context(logger, expert_id=expert.id, user_id=user.id, date=consultation_date)

    _check_expert_hours(expert, consultation_date, window)
    _lock(Expert, expert.id)
    ensure_available(window, _held_consultations(expert.id, consultation_date),
                     CONSULTATION_BLOCKING_STATUSES)

    consultation = ExpertConsultation(
        user_id=user.id,
        expert_id=expert.id,
        consultation_date=consultation_date,
        start_time=window.start,
        end_time=window.end,
        notes=notes,
        amount=expert.consultation_fee or 0,
        status='scheduled',
    )
    consultation.sync_active_slot()
    db.session.add(consultation)
    _flush_slot(log, window)

    log.info('Consultation %s booked for %s', consultation.id, window)
    return consultation


def _check_transition(transitions, current, target):
    if target == current:
        return
    if target not in transitions.get(current, set()):
        raise ValidationError.for_field('status', f'Cannot move from {current} to {target}')


def transition_visit(visit, status, actor, message=None):
    """Move a visit to ``status``, re-checking the calendar if it starts holding a slot again"""
    _check_transition(VISIT_TRANSITIONS, visit.status, status)
    log = with_context(logger, visit_id=visit.id, property_id=visit.property_id, actor_id=actor.id)

    was_blocking = visit.is_blocking()
    previous = visit.status
    visit.status = status

    if visit.is_blocking() and not was_blocking:
        _lock(Property, visit.property_id)
        ensure_available(visit.window, _held_visits(visit.property_id, visit.visit_date),
                         VISIT_BLOCKING_STATUSES, exclude_id=visit.id)

    if status == 'cancelled':
        visit.cancelled_at = datetime.utcnow()
        visit.cancelled_by = actor.id
    elif message is not None or status in ('confirmed', 'rejected'):
        visit.owner_response = message or visit.owner_response
        visit.responded_at = datetime.utcnow()

    visit.sync_active_slot()
    _flush_slot(log, visit.window)
    log.info('Visit moved from %s to %s', previous, status)
    return visit


def transition_consultation(consultation, status, actor, reason=None):
    """Move a consultation to ``status``; rebooking a cancelled one re-checks the slot"""
    _check_transition(CONSULTATION_TRANSITIONS, consultation.status, status)
    log = with_context(logger, consultation_id=consultation.id,
                       expert_id=consultation.expert_id, actor_id=actor.id)

    was_blocking = consultation.is_blocking()
    previous = consultation.status
    consultation.status = status

    if consultation.is_blocking() and not was_blocking:
        _check_expert_hours(consultation.expert, consultation.consultation_date, consultation.window)
        _lock(Expert, consultation.expert_id)
        ensure_available(consultation.window,
                         _held_consultations(consultation.expert_id, consultation.consultation_date),
                         CONSULTATION_BLOCKING_STATUSES, exclude_id=consultation.id)
        consultation.cancelled_by = None
        consultation.cancellation_reason = None

    if status == 'cancelled':
        consultation.cancelled_by = actor.id
        consultation.cancellation_reason = reason
    elif status == 'completed' and previous != 'completed':
        Expert.query.filter_by(id=consultation.expert_id).update(
            {Expert.consultation_count: Expert.consultation_count + 1}, synchronize_session=False
        )

    consultation.sync_active_slot()
    _flush_slot(log, consultation.window)
    log.info('Consultation moved from %s to %s', previous, status)
    return consultation
