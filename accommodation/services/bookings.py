"""
Booking requests and the owner's answers to them.

Cached counters on the property (bookings, token amount received) are moved
atomically in the same transaction as the booking row.
"""
import logging
import math

from accommodation import db
from accommodation.models.booking import BOOKING_TRANSITIONS, Booking
from accommodation.models.property import Property
from accommodation.services import notifications
from accommodation.utils.errors import ValidationError
from accommodation.utils.logging import with_context

logger = logging.getLogger(__name__)


def stay_months(move_in, move_out):
    return max(1, math.ceil((move_out - move_in).days / 30))


def create_booking(property, tenant, data):
    """Record a booking request; returns the booking and the owner's notification"""
    log = with_context(logger, property_id=property.id, tenant_id=tenant.id)

    if property.owner_id == tenant.id:
        raise ValidationError.for_field('property_id', 'You cannot book your own property')

    months = stay_months(data.move_in_date, data.move_out_date)
    booking = Booking(
        user_id=tenant.id,
        property_id=property.id,
        owner_id=property.owner_id,
        move_in_date=data.move_in_date,
        move_out_date=data.move_out_date,
        months=months,
        total_amount=float(property.price) * months,
        token_amount=data.token_amount,
        payment_reference=data.payment_reference,
        notes=data.notes,
        status='pending',
    )
    db.session.add(booking)
    db.session.flush()

    property.increment('booking_count')
    if data.token_amount:
        property.increment('token_amount_received', data.token_amount)

    note = notifications.queue(
        property.owner_id, 'booking_requested', 'New booking request',
        f'{tenant.name} requested to book {property.title} from {data.move_in_date.isoformat()}',
        actor=tenant, entity=booking, priority='high',
    )
    log.info('Booking %s requested for %s months', booking.id, months)
    return booking, note


def respond_to_booking(booking, status, actor, message=None):
    """Move a booking to ``status``; leaving the active states gives back its token amount"""
    if status != booking.status and status not in BOOKING_TRANSITIONS.get(booking.status, set()):
        raise ValidationError.for_field('status', f'Cannot move from {booking.status} to {status}')

    log = with_context(logger, booking_id=booking.id, actor_id=actor.id)
    was_active = booking.is_active()
    previous = booking.status
    booking.respond(status, message)

    if was_active and not booking.is_active() and booking.token_amount:
        Property.query.filter_by(id=booking.property_id).update(
            {Property.token_amount_received: Property.token_amount_received - booking.token_amount},
            synchronize_session=False,
        )

    recipient = booking.user_id if actor.id != booking.user_id else booking.owner_id
    note = notifications.queue(
        recipient, 'booking_responded', f'Booking {status}',
        f'Your booking for {booking.property.title} is now {status}',
        actor=actor, entity=booking,
    )
    log.info('Booking moved from %s to %s', previous, status)
    return note
