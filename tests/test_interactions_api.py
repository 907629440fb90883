from accommodation import db
from accommodation.models import Enquiry, Property, Review, ReviewState, Role

COMMENT = 'Lovely flat, quiet neighbours and fast WiFi.'


def counters(listing):
    db.session.expire_all()
    return db.session.get(Property, listing.id).analytics()


def review(client, headers, listing, rating=5, comment=COMMENT):
    return client.post('/api/reviews', json={'propertyId': listing.id, 'rating': rating, 'comment': comment},
                       headers=headers)


def test_review_once_per_tenant(client, auth_header, tenant, listing):
    assert review(client, auth_header(tenant), listing).status_code == 201

    r = review(client, auth_header(tenant), listing, rating=3)

    assert r.status_code == 400
    assert Review.query.count() == 1


def test_review_rating_out_of_range(client, auth_header, tenant, listing):
    r = review(client, auth_header(tenant), listing, rating=6)

    assert r.status_code == 400
    assert r.get_json()['errors'][0]['field'] == 'rating'


def test_review_comment_is_sanitized(client, auth_header, tenant, listing):
    r = review(client, auth_header(tenant), listing, comment='<script>x()</script>Great landlord overall')
    assert '<script>' not in r.get_json()['review']['comment']


def test_deleted_review_stops_counting_and_can_be_rewritten(client, auth_header, tenant, make_user, listing):
    other = make_user(Role.TENANT)
    review_id = review(client, auth_header(tenant), listing, rating=1).get_json()['review']['id']
    review(client, auth_header(other), listing, rating=5)

    assert client.get(f'/api/reviews/property/{listing.id}').get_json()['averageRating'] == 3.0

    client.delete(f'/api/reviews/{review_id}', headers=auth_header(tenant))
    listed = client.get(f'/api/reviews/property/{listing.id}').get_json()
    assert (listed['count'], listed['averageRating']) == (1, 5.0)
    assert db.session.get(Review, review_id).state == ReviewState.ARCHIVED

    r = review(client, auth_header(tenant), listing, rating=4)
    assert r.status_code == 201
    assert r.get_json()['review']['id'] == review_id
    assert client.get(f'/api/reviews/property/{listing.id}').get_json()['averageRating'] == 4.5


def test_only_the_author_edits_a_review(client, auth_header, tenant, make_user, listing):
    review_id = review(client, auth_header(tenant), listing).get_json()['review']['id']

    r = client.put(f'/api/reviews/{review_id}', json={'rating': 1}, headers=auth_header(make_user(Role.TENANT)))
    assert r.status_code == 403

    r = client.put(f'/api/reviews/{review_id}', json={'rating': 4}, headers=auth_header(tenant))
    assert r.get_json()['review']['rating'] == 4


def test_detail_page_shows_average_rating(client, auth_header, tenant, listing):
    review(client, auth_header(tenant), listing, rating=4)

    data = client.get(f'/api/properties/{listing.id}').get_json()['property']

    assert data['averageRating'] == 4.0
    assert data['review_count'] == 1


def test_favorite_twice_counts_once(client, auth_header, tenant, listing):
    assert client.post(f'/api/favorites/{listing.id}', headers=auth_header(tenant)).status_code == 201
    assert client.post(f'/api/favorites/{listing.id}', headers=auth_header(tenant)).status_code == 200

    assert counters(listing)['favorites'] == 1
    assert client.get(f'/api/favorites/check/{listing.id}', headers=auth_header(tenant)).get_json() == {
        'is_favorite': True}


def test_unfavorite(client, auth_header, tenant, listing):
    client.post(f'/api/favorites/{listing.id}', headers=auth_header(tenant))

    assert client.delete(f'/api/favorites/{listing.id}', headers=auth_header(tenant)).status_code == 200
    assert counters(listing)['favorites'] == 0
    assert client.delete(f'/api/favorites/{listing.id}', headers=auth_header(tenant)).status_code == 404


def test_favorites_list_leaves_out_hidden_listings(client, auth_header, tenant, make_property, listing):
    hidden = make_property(title='Soon hidden')
    client.post(f'/api/favorites/{listing.id}', headers=auth_header(tenant))
    client.post(f'/api/favorites/{hidden.id}', headers=auth_header(tenant))
    hidden.set_visibility(False)
    db.session.commit()

    favorites = client.get('/api/favorites', headers=auth_header(tenant)).get_json()['favorites']

    assert [f['property_id'] for f in favorites] == [listing.id]


def test_enquiry_thread(client, auth_header, tenant, owner, listing, notifier):
    r = client.post('/api/enquiries', json={
        'propertyId': listing.id, 'subject': 'Pets', 'message': 'Are cats allowed?'
    }, headers=auth_header(tenant))

    assert r.status_code == 201
    enquiry_id = r.get_json()['enquiry']['id']
    assert counters(listing)['enquiries'] == 1
    assert notifier.rooms() == [f'user:{owner.id}']

    r = client.post(f'/api/enquiries/{enquiry_id}/replies', json={'message': 'Yes, one cat.'},
                    headers=auth_header(owner))
    assert r.status_code == 201
    assert r.get_json()['enquiry']['status'] == 'replied'
    assert notifier.rooms()[-1] == f'user:{tenant.id}'

    r = client.post(f'/api/enquiries/{enquiry_id}/replies', json={'message': 'Thanks!', 'close': True},
                    headers=auth_header(tenant))
    assert r.get_json()['enquiry']['status'] == 'closed'
    assert len(r.get_json()['enquiry']['replies']) == 2


def test_strangers_cannot_reply(client, auth_header, tenant, make_user, listing):
    enquiry = Enquiry(user_id=tenant.id, property_id=listing.id, owner_id=listing.owner_id,
                      subject='Parking', message='Is there parking?')
    db.session.add(enquiry)
    db.session.commit()

    r = client.post(f'/api/enquiries/{enquiry.id}/replies', json={'message': 'Hello'},
                    headers=auth_header(make_user(Role.TENANT)))
    assert r.status_code == 403


def test_owner_inbox(client, auth_header, tenant, owner, make_user, listing):
    client.post('/api/enquiries', json={'propertyId': listing.id, 'subject': 'Lease', 'message': 'Minimum term?'},
                headers=auth_header(tenant))

    mine = client.get('/api/enquiries/owner', headers=auth_header(owner)).get_json()['enquiries']
    theirs = client.get('/api/enquiries/owner', headers=auth_header(make_user(Role.OWNER))).get_json()['enquiries']

    assert len(mine) == 1
    assert theirs == []
