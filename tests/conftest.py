from datetime import date, timedelta

import pytest
from flask_jwt_extended import create_access_token

from accommodation import create_app, db
from accommodation.models import Expert, Property, User, Role
from accommodation.services.realtime import Notifier

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'JWT_SECRET_KEY': 'test-jwt-secret-key-with-enough-bytes',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SQLALCHEMY_ENGINE_OPTIONS': {},
    'RATELIMIT_ENABLED': False,
    'VIEW_DEDUP_WINDOW_HOURS': 24,
}


@pytest.fixture(autouse=True)
def offline_integrations(monkeypatch):
    """Keep email and WhatsApp senders from reaching their providers"""
    for name in ('RESEND_API_KEY', 'TWILIO_ACCOUNT_SID', 'TWILIO_AUTH_TOKEN', 'TWILIO_WHATSAPP_NUMBER'):
        monkeypatch.delenv(name, raising=False)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.events = []

    def notify(self, room, event, payload):
        self.events.append((room, event, payload))

    def rooms(self):
        return [room for room, _, _ in self.events]


class BrokenNotifier(Notifier):
    def notify(self, room, event, payload):
        raise ConnectionError('push server unreachable')


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(notifier):
    app = create_app(TEST_CONFIG, notifier=notifier)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make(role=Role.TENANT, name=None, **fields):
        counter['n'] += 1
        user = User(
            email=f'{role.value}{counter["n"]}@example.com',
            name=name or f'{role.value.title()} {counter["n"]}',
            role=role,
            **fields
        )
        user.set_password('password123')
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def auth_header():
    def _header(user):
        return {'Authorization': f'Bearer {create_access_token(identity=str(user.id))}'}
    return _header


@pytest.fixture
def owner(make_user):
    return make_user(Role.OWNER, name='Olive Owner')


@pytest.fixture
def tenant(make_user):
    return make_user(Role.TENANT, name='Tom Tenant')


@pytest.fixture
def make_property(app, owner):
    def _make(owner=owner, **fields):
        values = dict(
            title='Sunny two bedroom flat',
            description='A bright flat close to the station with a big balcony.',
            price=25000,
            deposit=50000,
            address='12 Riverside Drive',
            city='Nairobi',
            state='Nairobi County',
            property_type='2BHK',
            features=['WiFi', 'Balcony'],
            facilities=['Parking'],
            images=['https://img.example.com/1.jpg'],
            area=900,
            bedrooms=2,
            bathrooms=1,
            owner_id=owner.id,
        )
        values.update(fields)
        prop = Property(**values)
        db.session.add(prop)
        db.session.commit()
        return prop
    return _make


@pytest.fixture
def listing(make_property):
    return make_property()


@pytest.fixture
def expert(make_user):
    user = make_user(Role.EXPERT, name='Eve Expert')
    profile = Expert(user_id=user.id, consultation_fee=1500, expertise=['leases'])
    db.session.add(profile)
    db.session.commit()
    return profile


@pytest.fixture
def next_week():
    return date.today() + timedelta(days=7)


@pytest.fixture
def broken_notifier(app):
    """Swap in a notifier whose pushes always fail"""
    app.extensions['notifier'] = BrokenNotifier()
    return app.extensions['notifier']
