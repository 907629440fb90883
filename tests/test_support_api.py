import pytest

from accommodation import db
from accommodation.models import FAQ, CommunicationLog, Notification, Role, Ticket


@pytest.fixture
def agent(make_user):
    return make_user(Role.SUPPORT, name='Sam Support')


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name='Ada Admin')


def open_ticket(client, headers, **fields):
    body = {'subject': 'Cannot upload photos', 'description': 'The upload spinner never stops.', **fields}
    return client.post('/api/tickets', json=body, headers=headers)


def test_opening_a_ticket_notifies_support(client, auth_header, tenant, agent, admin, notifier):
    r = open_ticket(client, auth_header(tenant), category='technical', priority='urgent')

    assert r.status_code == 201
    assert r.get_json()['ticket']['status'] == 'open'
    assert sorted(notifier.rooms()) == sorted([f'user:{agent.id}', f'user:{admin.id}'])
    assert Notification.query.filter_by(type='new_ticket', priority='high').count() == 2
    assert CommunicationLog.query.filter_by(type='ticket', direction='inbound').count() == 1


def test_unknown_ticket_category(client, auth_header, tenant):
    r = open_ticket(client, auth_header(tenant), category='plumbing')
    assert r.status_code == 400


def test_ticket_visibility(client, auth_header, tenant, make_user, agent):
    ticket_id = open_ticket(client, auth_header(tenant)).get_json()['ticket']['id']
    other = make_user(Role.TENANT)

    assert client.get(f'/api/tickets/{ticket_id}', headers=auth_header(other)).status_code == 403
    assert client.get(f'/api/tickets/{ticket_id}', headers=auth_header(agent)).status_code == 200
    assert client.get('/api/tickets', headers=auth_header(other)).get_json()['tickets'] == []
    assert len(client.get('/api/tickets', headers=auth_header(agent)).get_json()['tickets']) == 1


def test_ticket_conversation(client, auth_header, tenant, agent, notifier):
    ticket_id = open_ticket(client, auth_header(tenant)).get_json()['ticket']['id']

    client.post(f'/api/tickets/{ticket_id}/messages', json={'message': 'Looks like a bug', 'isInternal': True},
                headers=auth_header(agent))
    client.post(f'/api/tickets/{ticket_id}/messages', json={'message': 'Try a smaller image please'},
                headers=auth_header(agent))
    assert db.session.get(Ticket, ticket_id).status == 'waiting'
    assert notifier.rooms()[-1] == f'user:{tenant.id}'

    client.post(f'/api/tickets/{ticket_id}/messages', json={'message': 'That worked'},
                headers=auth_header(tenant))
    assert db.session.get(Ticket, ticket_id).status == 'open'

    seen_by_tenant = client.get(f'/api/tickets/{ticket_id}', headers=auth_header(tenant)).get_json()['ticket']
    seen_by_agent = client.get(f'/api/tickets/{ticket_id}', headers=auth_header(agent)).get_json()['ticket']
    assert len(seen_by_tenant['messages']) == 2
    assert len(seen_by_agent['messages']) == 3


def test_closed_ticket_takes_no_messages(client, auth_header, tenant, agent):
    ticket_id = open_ticket(client, auth_header(tenant)).get_json()['ticket']['id']

    r = client.put(f'/api/tickets/{ticket_id}/status', json={'status': 'closed'}, headers=auth_header(agent))
    assert r.get_json()['ticket']['resolved_at'] is not None

    r = client.post(f'/api/tickets/{ticket_id}/messages', json={'message': 'Hello?'}, headers=auth_header(tenant))
    assert r.status_code == 400


def test_assign_ticket(client, auth_header, tenant, agent, admin):
    ticket_id = open_ticket(client, auth_header(tenant)).get_json()['ticket']['id']

    r = client.put(f'/api/tickets/{ticket_id}/assign', json={'assigneeId': tenant.id}, headers=auth_header(admin))
    assert r.status_code == 404

    r = client.put(f'/api/tickets/{ticket_id}/assign', json={'assigneeId': agent.id}, headers=auth_header(admin))
    ticket = r.get_json()['ticket']
    assert ticket['assigned_to']['id'] == agent.id
    assert ticket['status'] == 'in_progress'


def test_tenants_cannot_change_ticket_status(client, auth_header, tenant):
    ticket_id = open_ticket(client, auth_header(tenant)).get_json()['ticket']['id']
    r = client.put(f'/api/tickets/{ticket_id}/status', json={'status': 'resolved'}, headers=auth_header(tenant))
    assert r.status_code == 403


def test_chat_session_is_reused_until_closed(client, auth_header, tenant):
    first = client.post('/api/chat/sessions', json={'subject': 'Help', 'message': 'Hi'}, headers=auth_header(tenant))
    again = client.post('/api/chat/sessions', json={'message': 'Anyone there?'}, headers=auth_header(tenant))

    assert first.status_code == 201
    assert again.status_code == 200
    chat = again.get_json()['chat']
    assert chat['id'] == first.get_json()['chat']['id']
    assert len(chat['messages']) == 2

    client.put(f'/api/chat/{chat["id"]}/status', json={'status': 'closed'}, headers=auth_header(tenant))
    assert client.post('/api/chat/sessions', json={}, headers=auth_header(tenant)).status_code == 201


def test_first_agent_takes_the_chat(client, auth_header, tenant, agent, make_user, notifier):
    chat_id = client.post('/api/chat/sessions', json={}, headers=auth_header(tenant)).get_json()['chat']['id']

    r = client.post(f'/api/chat/{chat_id}/messages', json={'message': 'How can I help?'}, headers=auth_header(agent))
    assert r.status_code == 201
    assert notifier.rooms() == [f'user:{tenant.id}']

    client.post(f'/api/chat/{chat_id}/messages', json={'message': 'My deposit'}, headers=auth_header(tenant))
    assert notifier.rooms()[-1] == f'user:{agent.id}'

    outsider = make_user(Role.TENANT)
    r = client.post(f'/api/chat/{chat_id}/messages', json={'message': 'hi'}, headers=auth_header(outsider))
    assert r.status_code == 403


def test_faq_search_and_feedback(client, auth_header, agent):
    headers = auth_header(agent)
    created = client.post('/api/faq', json={
        'question': 'How do I pay the deposit?', 'answer': 'Deposits are paid on move in.',
        'category': 'payment', 'keywords': ['mpesa'],
    }, headers=headers)
    assert created.status_code == 201
    faq_id = created.get_json()['faq']['id']
    client.post('/api/faq', json={'question': 'Can I have pets?', 'answer': 'Ask the owner first.'},
                headers=headers)

    assert [f['id'] for f in client.get('/api/faq?search=mpesa').get_json()['faqs']] == [faq_id]
    assert len(client.get('/api/faq?category=payment').get_json()['faqs']) == 1

    assert client.get(f'/api/faq/{faq_id}').get_json()['faq']['views'] == 1
    rated = client.post(f'/api/faq/{faq_id}/rate', json={'helpful': True}).get_json()['faq']
    assert rated['helpful'] == 1

    categories = {c['name']: c['count'] for c in client.get('/api/faq/categories').get_json()['categories']}
    assert categories['payment'] == 1
    assert categories['general'] == 1


def test_deleted_faq_is_hidden(client, auth_header, agent):
    faq = FAQ(question='Old question?', answer='Old answer.')
    db.session.add(faq)
    db.session.commit()

    client.delete(f'/api/faq/{faq.id}', headers=auth_header(agent))

    assert client.get(f'/api/faq/{faq.id}').status_code == 404
    assert client.get('/api/faq').get_json()['faqs'] == []


def test_tenants_cannot_write_faqs(client, auth_header, tenant):
    r = client.post('/api/faq', json={'question': 'Is this allowed?', 'answer': 'It is not.'},
                    headers=auth_header(tenant))
    assert r.status_code == 403


def test_unconfigured_email_is_logged_as_failed(client, auth_header, agent, tenant):
    r = client.post('/api/communications/email', json={
        'userId': tenant.id, 'subject': 'Your ticket', 'message': 'We fixed the upload issue.'
    }, headers=auth_header(agent))

    assert r.status_code == 200
    assert r.get_json()['sent'] is False
    entry = r.get_json()['communication']
    assert entry['status'] == 'failed'
    assert entry['user_id'] == tenant.id


def test_whatsapp_needs_a_number(client, auth_header, agent, tenant):
    r = client.post('/api/communications/whatsapp', json={'userId': tenant.id, 'message': 'Hello'},
                    headers=auth_header(agent))
    assert r.status_code == 400

    r = client.post('/api/communications/whatsapp', json={'phone': '0712345678', 'message': 'Hello'},
                    headers=auth_header(agent))
    assert r.get_json()['sent'] is False


def test_whatsapp_transport_failure_is_logged_not_raised(client, auth_header, agent, monkeypatch):
    for name, value in (('TWILIO_ACCOUNT_SID', 'AC123'), ('TWILIO_AUTH_TOKEN', 'secret'),
                        ('TWILIO_WHATSAPP_NUMBER', '+14155238886')):
        monkeypatch.setenv(name, value)

    def unreachable(*args, **kwargs):
        raise ConnectionError('twilio unreachable')

    monkeypatch.setattr('accommodation.utils.whatsapp.Client', unreachable)

    r = client.post('/api/communications/whatsapp', json={'phone': '0712345678', 'message': 'Hello'},
                    headers=auth_header(agent))
    assert r.status_code == 200
    body = r.get_json()
    assert body['sent'] is False
    assert body['communication']['details']['error'] == 'twilio unreachable'

    entry = CommunicationLog.query.filter_by(type='whatsapp').one()
    assert entry.status == 'failed'
    assert entry.channel_id is None


def test_communication_log_listing(client, auth_header, agent, tenant):
    client.post('/api/communications/email', json={'email': 'x@example.com', 'subject': 'Hi', 'message': 'Hello'},
                headers=auth_header(agent))

    r = client.get('/api/communications?type=email', headers=auth_header(agent))
    assert r.get_json()['pagination']['total'] == 1
    assert client.get('/api/communications', headers=auth_header(tenant)).status_code == 403


def test_notifications_inbox(client, auth_header, tenant, owner, listing):
    client.post('/api/enquiries', json={'propertyId': listing.id, 'subject': 'Rent', 'message': 'Negotiable?'},
                headers=auth_header(tenant))
    client.post('/api/enquiries', json={'propertyId': listing.id, 'subject': 'Water', 'message': 'Any shortages?'},
                headers=auth_header(tenant))

    inbox = client.get('/api/notifications', headers=auth_header(owner)).get_json()
    assert inbox['unread_count'] == 2
    first_id = inbox['notifications'][0]['id']

    r = client.put(f'/api/notifications/{first_id}/read', headers=auth_header(owner))
    assert r.status_code == 200
    assert len(client.get('/api/notifications?unread=true', headers=auth_header(owner)).get_json()['notifications']) == 1

    assert client.put(f'/api/notifications/{first_id}/read', headers=auth_header(tenant)).status_code == 404
    assert client.put('/api/notifications/read-all', headers=auth_header(owner)).get_json()['updated'] == 1
