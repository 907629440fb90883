import logging

import pytest

from accommodation.models import Role
from accommodation.utils.logging import with_context
from accommodation.utils.permissions import ROLE_CAPABILITIES, Capability, can


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name='Ada Admin')


def test_admin_lists_and_filters_users(client, auth_header, admin, owner, tenant):
    everyone = client.get('/api/users', headers=auth_header(admin)).get_json()
    owners = client.get('/api/users?role=owner', headers=auth_header(admin)).get_json()
    by_name = client.get('/api/users?search=tom', headers=auth_header(admin)).get_json()

    assert everyone['pagination']['total'] == 3
    assert [u['id'] for u in owners['users']] == [owner.id]
    assert [u['id'] for u in by_name['users']] == [tenant.id]


def test_unknown_role_filter(client, auth_header, admin):
    assert client.get('/api/users?role=wizard', headers=auth_header(admin)).status_code == 400


def test_non_admins_are_refused(client, auth_header, make_user):
    support = make_user(Role.SUPPORT)
    r = client.get('/api/users', headers=auth_header(support))
    assert r.status_code == 403
    assert r.get_json()['message'] == 'Admin access required'


def test_change_role(client, auth_header, admin, tenant):
    r = client.put(f'/api/users/{tenant.id}/role', json={'role': 'owner'}, headers=auth_header(admin))

    assert r.get_json()['user']['role'] == 'owner'
    assert can(tenant, Capability.LIST_PROPERTY)


def test_admin_cannot_demote_themselves(client, auth_header, admin):
    r = client.put(f'/api/users/{admin.id}/role', json={'role': 'tenant'}, headers=auth_header(admin))
    assert r.status_code == 400


def test_deactivated_user_loses_access(client, auth_header, admin, tenant):
    client.put(f'/api/users/{tenant.id}/status', json={'isActive': False}, headers=auth_header(admin))

    assert client.get('/api/favorites', headers=auth_header(tenant)).status_code == 403


def test_roles_have_no_overlap_beyond_common_capabilities():
    assert Capability.LIST_PROPERTY not in ROLE_CAPABILITIES[Role.TENANT]
    assert Capability.BOOK_PROPERTY not in ROLE_CAPABILITIES[Role.OWNER]
    assert Capability.HANDLE_SUPPORT not in ROLE_CAPABILITIES[Role.EXPERT]
    assert ROLE_CAPABILITIES[Role.ADMIN] == set(Capability)


def test_nobody_can_do_anything_anonymously():
    assert not can(None, Capability.BROWSE)


def test_context_logger_prefixes_messages(caplog):
    log = with_context(logging.getLogger('accommodation.test'), expert_id=4, user_id=None)

    with caplog.at_level(logging.INFO):
        log.info('Consultation %s booked', 12)

    assert caplog.records[-1].getMessage() == '[expert_id=4] Consultation 12 booked'
    assert caplog.records[-1].expert_id == 4
