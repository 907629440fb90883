"""
Slot conflict detection.

Appointments occupy half-open windows ``[start, end)`` on a single date, so a
slot ending at 15:00 never collides with one starting at 15:00. Only
appointments in a blocking status occupy their window; everything here is a
pure function over the data handed in.
"""
from collections import namedtuple
from datetime import datetime, time

from accommodation.utils.errors import SlotUnavailable, ValidationError

# Statuses that still hold their slot
CONSULTATION_BLOCKING_STATUSES = frozenset({'scheduled', 'confirmed'})
VISIT_BLOCKING_STATUSES = frozenset({'pending', 'confirmed'})

# Named visit slots offered on the listing page
SLOT_LABELS = {
    'morning': ('09:00', '12:00'),
    'afternoon': ('12:00', '16:00'),
    'evening': ('16:00', '19:00'),
}


class TimeWindow(namedtuple('TimeWindow', ['start', 'end'])):
    __slots__ = ()

    def overlaps(self, other):
        return self.start < other.end and other.start < self.end

    def contains(self, other):
        return self.start <= other.start and other.end <= self.end

    def __str__(self):
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


def parse_time(value, field='time'):
    """Parse an ``HH:MM`` string (24-hour clock) into a ``datetime.time``"""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        return datetime.strptime(str(value).strip(), '%H:%M').time()
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, f'{field} must be in HH:MM format')


def make_window(start, end):
    """Build a window, rejecting empty or inverted ranges"""
    window = TimeWindow(parse_time(start, 'start_time'), parse_time(end, 'end_time'))
    if window.start >= window.end:
        raise ValidationError.for_field('end_time', 'End time must be after start time')
    return window


def window_from_label(label):
    """Resolve a slot label (``morning`` or ``"10:00-11:30"``) into a window"""
    if not label or not str(label).strip():
        raise ValidationError.for_field('time_slot', 'Time slot is required')

    key = str(label).strip().lower()
    if key in SLOT_LABELS:
        return make_window(*SLOT_LABELS[key])

    parts = key.replace(' ', '').split('-')
    if len(parts) != 2:
        raise ValidationError.for_field(
            'time_slot', 'Time slot must be morning, afternoon, evening or HH:MM-HH:MM'
        )
    return make_window(parts[0], parts[1])


def find_conflicts(requested, existing, blocking_statuses, exclude_id=None):
    """
    Return the existing appointments whose window collides with ``requested``.

    ``existing`` is an iterable of objects exposing ``id``, ``status`` and a
    ``window`` property; they are expected to share the resource and date.
    """
    conflicts = []
    for appointment in existing:
        if exclude_id is not None and appointment.id == exclude_id:
            continue
        if appointment.status not in blocking_statuses:
            continue
        if requested.overlaps(appointment.window):
            conflicts.append(appointment)
    return conflicts


def ensure_available(requested, existing, blocking_statuses, exclude_id=None):
    """Raise ``SlotUnavailable`` when ``requested`` collides with a held slot"""
    conflicts = find_conflicts(requested, existing, blocking_statuses, exclude_id=exclude_id)
    if conflicts:
        raise SlotUnavailable(f'The {requested} slot overlaps an existing appointment')
