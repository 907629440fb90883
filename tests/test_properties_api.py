from accommodation import db
from accommodation.models import Property, Role
from accommodation.models.lifecycle import ListingState
from accommodation.services.cloudinary_service import CloudinaryService

NEW_LISTING = {
    'title': 'Modern studio in Kilimani',
    'description': 'Compact studio with a kitchenette and lots of natural light.',
    'price': 18000,
    'address': '4 Argwings Kodhek Road',
    'city': 'Nairobi',
    'state': 'Nairobi County',
    'propertyType': 'Studio',
    'features': ['WiFi', 'Security'],
    'facilities': ['Lift'],
    'images': ['https://img.example.com/studio.jpg'],
    'area': 350,
    'bedrooms': 0,
    'bathrooms': 1,
}


def test_owner_creates_listing(client, auth_header, owner):
    r = client.post('/api/properties', json=NEW_LISTING, headers=auth_header(owner))

    assert r.status_code == 201
    prop = r.get_json()['property']
    assert prop['deposit'] == 36000.0
    assert prop['listing_state'] == 'active'
    assert prop['owner_id'] == owner.id


def test_data_url_images_are_uploaded(client, auth_header, owner, monkeypatch):
    monkeypatch.setattr(CloudinaryService, 'upload_image',
                        lambda self, file, folder=None: 'https://res.cloudinary.com/demo/abc.jpg')
    body = {**NEW_LISTING, 'images': ['data:image/png;base64,AAAA', 'https://img.example.com/kept.jpg']}

    r = client.post('/api/properties', json=body, headers=auth_header(owner))

    assert r.get_json()['property']['images'] == [
        'https://res.cloudinary.com/demo/abc.jpg', 'https://img.example.com/kept.jpg']


def test_listing_validation(client, auth_header, owner):
    body = {**NEW_LISTING, 'propertyType': 'Castle', 'features': ['Moat'], 'images': []}

    r = client.post('/api/properties', json=body, headers=auth_header(owner))

    assert r.status_code == 400
    assert {e['field'] for e in r.get_json()['errors']} == {'propertyType', 'features', 'images'}


def test_tenants_cannot_list(client, auth_header, tenant):
    assert client.post('/api/properties', json=NEW_LISTING, headers=auth_header(tenant)).status_code == 403


def test_public_listing_filters(client, make_property):
    cheap = make_property(title='Cheap bedsitter', price=9000, property_type='Studio', city='Nakuru')
    make_property(title='Family house', price=60000, property_type='3BHK', features=['Garden'])
    hidden = make_property(title='Hidden flat', price=9500)
    hidden.set_visibility(False)
    db.session.commit()

    def ids(query):
        return [p['id'] for p in client.get(f'/api/properties?{query}').get_json()['properties']]

    assert ids('maxPrice=10000') == [cheap.id]
    assert ids('location=nakuru') == [cheap.id]
    assert len(ids('features=Garden')) == 1
    assert len(ids('features=WiFi,Balcony&facilities=Parking')) == 1


def test_listing_pagination(client, make_property):
    for n in range(3):
        make_property(title=f'Flat number {n}')

    page = client.get('/api/properties?perPage=2&page=2').get_json()

    assert len(page['properties']) == 1
    assert page['pagination'] == {'page': 2, 'per_page': 2, 'total': 3, 'pages': 2}


def test_update_listing(client, auth_header, owner, make_user, listing):
    r = client.put(f'/api/properties/{listing.id}', json={'price': 27000}, headers=auth_header(make_user(Role.OWNER)))
    assert r.status_code == 403

    r = client.put(f'/api/properties/{listing.id}', json={'price': 27000, 'title': 'Renovated two bedroom'},
                   headers=auth_header(owner))
    prop = r.get_json()['property']
    assert (prop['price'], prop['title']) == (27000.0, 'Renovated two bedroom')
    assert prop['deposit'] == 50000.0


def test_delete_archives_listing(client, auth_header, owner, listing):
    r = client.delete(f'/api/properties/{listing.id}', headers=auth_header(owner))

    assert r.status_code == 200
    assert db.session.get(Property, listing.id).listing_state == ListingState.ARCHIVED
    assert client.get(f'/api/properties/{listing.id}').status_code == 404
    mine = client.get('/api/properties/owner/my-properties', headers=auth_header(owner)).get_json()
    assert mine['properties'] == []


def test_admin_manages_any_listing(client, auth_header, make_user, listing):
    admin = make_user(Role.ADMIN)
    r = client.put(f'/api/properties/{listing.id}', json={'availability': 'Rented'}, headers=auth_header(admin))
    assert r.get_json()['property']['availability'] == 'Rented'


def test_missing_property(client):
    r = client.get('/api/properties/999')
    assert r.status_code == 404
    assert r.get_json() == {'message': 'Property not found'}
