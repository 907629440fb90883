from accommodation import db
from accommodation.models import Notification, Role, Visit


def request_visit(client, headers, listing, day, **slot):
    body = {'propertyId': listing.id, 'visitDate': day.isoformat(), **slot}
    return client.post('/api/visits', json=body, headers=headers)


def test_tenant_requests_visit_and_owner_is_notified(client, auth_header, tenant, owner, listing,
                                                     next_week, notifier):
    r = request_visit(client, auth_header(tenant), listing, next_week, timeSlot='morning')

    assert r.status_code == 201
    visit = r.get_json()['visit']
    assert visit['status'] == 'pending'
    assert (visit['start_time'], visit['end_time']) == ('09:00', '12:00')

    assert Notification.query.filter_by(user_id=owner.id, type='visit_requested').count() == 1
    assert notifier.rooms() == [f'user:{owner.id}']
    assert notifier.events[0][1] == 'notification:new'


def test_overlapping_visit_is_rejected(client, auth_header, make_user, listing, next_week):
    first, second = make_user(Role.TENANT), make_user(Role.TENANT)

    assert request_visit(client, auth_header(first), listing, next_week,
                         startTime='10:00', endTime='11:00').status_code == 201
    r = request_visit(client, auth_header(second), listing, next_week,
                      startTime='10:30', endTime='11:30')

    assert r.status_code == 409
    assert r.get_json() == {'message': 'The 10:30-11:30 slot overlaps an existing appointment'}
    assert Visit.query.count() == 1


def test_adjacent_visits_both_succeed(client, auth_header, make_user, listing, next_week):
    first, second = make_user(Role.TENANT), make_user(Role.TENANT)

    assert request_visit(client, auth_header(first), listing, next_week,
                         startTime='10:00', endTime='11:00').status_code == 201
    assert request_visit(client, auth_header(second), listing, next_week,
                         startTime='11:00', endTime='12:00').status_code == 201


def test_same_slot_on_another_property_is_free(client, auth_header, tenant, make_property, next_week):
    a, b = make_property(), make_property(title='Another quiet studio')
    headers = auth_header(tenant)

    assert request_visit(client, headers, a, next_week, timeSlot='evening').status_code == 201
    assert request_visit(client, headers, b, next_week, timeSlot='evening').status_code == 201


def test_cancelled_visit_frees_the_slot(client, auth_header, make_user, listing, next_week):
    first, second = make_user(Role.TENANT), make_user(Role.TENANT)

    r = request_visit(client, auth_header(first), listing, next_week, timeSlot='afternoon')
    visit_id = r.get_json()['visit']['id']

    r = client.post(f'/api/visits/{visit_id}/cancel', headers=auth_header(first))
    assert r.status_code == 200
    assert db.session.get(Visit, visit_id).active_slot is None

    assert request_visit(client, auth_header(second), listing, next_week,
                         timeSlot='afternoon').status_code == 201


def test_inverted_window_is_a_validation_error(client, auth_header, tenant, listing, next_week):
    r = request_visit(client, auth_header(tenant), listing, next_week, startTime='12:00', endTime='11:00')

    assert r.status_code == 400
    assert r.get_json()['errors'][0]['field'] == 'end_time'


def test_visit_requires_slot_or_times(client, auth_header, tenant, listing, next_week):
    r = request_visit(client, auth_header(tenant), listing, next_week)
    assert r.status_code == 400
    assert r.get_json()['errors']


def test_owner_cannot_request_visits(client, auth_header, owner, listing, next_week):
    r = request_visit(client, auth_header(owner), listing, next_week, timeSlot='morning')
    assert r.status_code == 403


def test_only_owner_confirms(client, auth_header, tenant, owner, listing, next_week, notifier):
    r = request_visit(client, auth_header(tenant), listing, next_week, timeSlot='morning')
    visit_id = r.get_json()['visit']['id']

    assert client.post(f'/api/visits/{visit_id}/confirm', headers=auth_header(tenant)).status_code == 403

    r = client.post(f'/api/visits/{visit_id}/confirm', json={'message': 'See you then'},
                    headers=auth_header(owner))
    assert r.status_code == 200
    assert r.get_json()['visit']['status'] == 'confirmed'
    assert r.get_json()['visit']['owner_response'] == 'See you then'
    assert notifier.rooms()[-1] == f'user:{tenant.id}'


def test_invalid_transition_is_rejected(client, auth_header, tenant, owner, listing, next_week):
    r = request_visit(client, auth_header(tenant), listing, next_week, timeSlot='morning')
    visit_id = r.get_json()['visit']['id']

    client.post(f'/api/visits/{visit_id}/reject', headers=auth_header(owner))
    r = client.post(f'/api/visits/{visit_id}/confirm', headers=auth_header(owner))

    assert r.status_code == 400
    assert r.get_json()['errors'][0]['field'] == 'status'


def test_visit_listing_per_role(client, auth_header, tenant, owner, listing, next_week):
    request_visit(client, auth_header(tenant), listing, next_week, timeSlot='morning')

    tenant_view = client.get('/api/visits', headers=auth_header(tenant)).get_json()['visits']
    owner_view = client.get('/api/visits', headers=auth_header(owner)).get_json()['visits']

    assert len(tenant_view) == len(owner_view) == 1
    assert owner_view[0]['tenant']['id'] == tenant.id


def test_outsider_cannot_read_visit(client, auth_header, make_user, tenant, listing, next_week):
    r = request_visit(client, auth_header(tenant), listing, next_week, timeSlot='morning')
    visit_id = r.get_json()['visit']['id']

    outsider = make_user(Role.TENANT)
    assert client.get(f'/api/visits/{visit_id}', headers=auth_header(outsider)).status_code == 403
