from collections import namedtuple
from datetime import time

import pytest

from accommodation.scheduling.overlap import (
    CONSULTATION_BLOCKING_STATUSES,
    VISIT_BLOCKING_STATUSES,
    TimeWindow,
    ensure_available,
    find_conflicts,
    make_window,
    parse_time,
    window_from_label,
)
from accommodation.utils.errors import SlotUnavailable, ValidationError

Appointment = namedtuple('Appointment', ['id', 'status', 'window'])


def appt(id, status, start, end):
    return Appointment(id, status, make_window(start, end))


def test_overlapping_windows_collide():
    assert make_window('14:00', '15:00').overlaps(make_window('14:30', '15:30'))
    assert make_window('14:30', '15:30').overlaps(make_window('14:00', '15:00'))


def test_window_contains_inner_and_edge_aligned_windows():
    hours = make_window('09:00', '12:00')
    assert hours.contains(make_window('09:00', '10:00'))
    assert hours.contains(make_window('11:00', '12:00'))
    assert not hours.contains(make_window('11:30', '12:30'))


def test_adjacent_windows_do_not_collide():
    assert not make_window('14:00', '15:00').overlaps(make_window('15:00', '16:00'))
    assert not make_window('15:00', '16:00').overlaps(make_window('14:00', '15:00'))


def test_contained_window_collides():
    assert make_window('09:00', '12:00').overlaps(make_window('10:00', '10:30'))


@pytest.mark.parametrize('start,end', [('10:00', '10:00'), ('11:00', '10:00')])
def test_empty_or_inverted_window_rejected(start, end):
    with pytest.raises(ValidationError) as exc:
        make_window(start, end)
    assert exc.value.errors[0]['field'] == 'end_time'


def test_bad_time_format_names_the_field():
    with pytest.raises(ValidationError) as exc:
        parse_time('25:99', 'start_time')
    assert exc.value.errors == [{'field': 'start_time', 'message': 'start_time must be in HH:MM format'}]


def test_slot_labels():
    assert window_from_label('morning') == TimeWindow(time(9), time(12))
    assert window_from_label('Afternoon') == TimeWindow(time(12), time(16))
    assert window_from_label('evening') == TimeWindow(time(16), time(19))
    assert window_from_label('10:00 - 11:30') == TimeWindow(time(10), time(11, 30))
    assert str(window_from_label('evening')) == '16:00-19:00'


def test_unknown_slot_label_rejected():
    with pytest.raises(ValidationError):
        window_from_label('midnight')


def test_expert_confirmed_afternoon_scenario():
    existing = [appt(1, 'confirmed', '14:00', '15:00')]

    with pytest.raises(SlotUnavailable):
        ensure_available(make_window('14:30', '15:30'), existing, CONSULTATION_BLOCKING_STATUSES)

    ensure_available(make_window('15:00', '16:00'), existing, CONSULTATION_BLOCKING_STATUSES)


@pytest.mark.parametrize('status', ['cancelled', 'rejected', 'completed', 'no-show'])
def test_terminal_consultations_never_block(status):
    existing = [appt(1, status, '14:00', '15:00')]
    assert find_conflicts(make_window('14:00', '15:00'), existing, CONSULTATION_BLOCKING_STATUSES) == []


def test_pending_visit_blocks_but_pending_is_not_a_consultation_status():
    existing = [appt(1, 'pending', '10:00', '11:00')]
    requested = make_window('10:30', '11:30')
    assert find_conflicts(requested, existing, VISIT_BLOCKING_STATUSES) == existing
    assert find_conflicts(requested, existing, CONSULTATION_BLOCKING_STATUSES) == []


def test_excluded_appointment_does_not_conflict_with_itself():
    existing = [appt(7, 'scheduled', '10:00', '11:00')]
    assert find_conflicts(make_window('10:00', '11:00'), existing,
                          CONSULTATION_BLOCKING_STATUSES, exclude_id=7) == []


def test_only_colliding_appointments_are_reported():
    existing = [
        appt(1, 'confirmed', '09:00', '10:00'),
        appt(2, 'scheduled', '10:00', '11:00'),
        appt(3, 'confirmed', '11:00', '12:00'),
    ]
    conflicts = find_conflicts(make_window('09:30', '10:30'), existing, CONSULTATION_BLOCKING_STATUSES)
    assert [c.id for c in conflicts] == [1, 2]
