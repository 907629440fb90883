"""
Database reads feeding the aggregator.

Everything in here is read-only except ``recount_property``, which rebuilds
the cached counters on the property row from the interaction tables.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from accommodation import db
from accommodation.analytics.aggregator import (
    PropertySnapshot,
    aggregate_portfolio,
    compute_property_stats,
)
from accommodation.models.booking import INACTIVE_BOOKING_STATUSES, Booking
from accommodation.models.enquiry import Enquiry
from accommodation.models.favorite import Favorite
from accommodation.models.lifecycle import ListingState, ReviewState
from accommodation.models.property import Property
from accommodation.models.review import Review
from accommodation.utils.logging import with_context

logger = logging.getLogger(__name__)


def _revenue(property_id):
    return db.session.query(func.coalesce(func.sum(Booking.token_amount), 0)).filter(
        Booking.property_id == property_id,
        Booking.status.notin_(INACTIVE_BOOKING_STATUSES),
    ).scalar()


def property_snapshot(property):
    review_count, rating_sum = db.session.query(
        func.count(Review.id), func.coalesce(func.sum(Review.rating), 0)
    ).filter(Review.property_id == property.id, Review.state == ReviewState.ACTIVE).one()

    return PropertySnapshot(
        property_id=property.id,
        title=property.title,
        views=property.view_count or 0,
        favorites=Favorite.query.filter_by(property_id=property.id).count(),
        enquiries=Enquiry.query.filter_by(property_id=property.id).count(),
        bookings=Booking.query.filter_by(property_id=property.id).count(),
        review_count=review_count or 0,
        rating_sum=float(rating_sum or 0),
        token_amount_sum=float(_revenue(property.id) or 0),
    )


def property_analytics(property):
    """Stats for one listing plus the people who showed interest in it"""
    stats = compute_property_stats(property_snapshot(property))

    favorites = Favorite.query.filter_by(property_id=property.id).all()
    enquiries = Enquiry.query.filter_by(property_id=property.id).order_by(Enquiry.created_at.desc()).all()
    bookings = Booking.query.filter_by(property_id=property.id).order_by(Booking.created_at.desc()).all()

    return {
        'property': {'id': property.id, 'title': property.title},
        'stats': stats.to_dict(),
        'interested_users': {
            'favorites': [f.user.summary() for f in favorites if f.user],
            'enquiries': [{'user': e.user.summary() if e.user else None, 'subject': e.subject,
                           'status': e.status} for e in enquiries],
            'bookings': [{'user': b.user.summary() if b.user else None, 'status': b.status,
                          'token_amount': float(b.token_amount or 0)} for b in bookings],
        },
    }


def owner_portfolio(owner):
    """Aggregate analytics over the owner's active listings, skipping unreadable rows"""
    log = with_context(logger, owner_id=owner.id)
    property_ids = [pid for (pid,) in db.session.query(Property.id).filter(
        Property.owner_id == owner.id,
        Property.listing_state == ListingState.ACTIVE,
    ).all()]

    snapshots, omitted = [], []
    for property_id in property_ids:
        try:
            snapshots.append(property_snapshot(db.session.get(Property, property_id)))
        except SQLAlchemyError:
            log.warning('Analytics for property %s could not be read', property_id, exc_info=True)
            db.session.rollback()
            omitted.append(property_id)

    portfolio = aggregate_portfolio(snapshots, omitted)
    log.info('Portfolio computed over %s properties', len(portfolio.properties))
    return portfolio


def dashboard_summary(owner, now=None):
    since = (now or datetime.utcnow()) - timedelta(days=7)
    owned = Property.query.filter(
        Property.owner_id == owner.id,
        Property.listing_state != ListingState.ARCHIVED,
    ).all()
    ids = [p.id for p in owned]

    recent_enquiries = 0
    recent_bookings = 0
    if ids:
        recent_enquiries = Enquiry.query.filter(Enquiry.property_id.in_(ids), Enquiry.created_at >= since).count()
        recent_bookings = Booking.query.filter(Booking.property_id.in_(ids), Booking.created_at >= since).count()

    return {
        'total_properties': len(owned),
        'active_properties': sum(1 for p in owned if p.is_listed()),
        'total_views': sum(p.view_count or 0 for p in owned),
        'total_bookings': sum(p.booking_count or 0 for p in owned),
        'total_token_amount': sum(float(p.token_amount_received or 0) for p in owned),
        'recent_enquiries': recent_enquiries,
        'recent_bookings': recent_bookings,
    }


def recount_property(property):
    """Rebuild cached counters; views are left alone since anonymous rows get pruned"""
    property.favorite_count = Favorite.query.filter_by(property_id=property.id).count()
    property.enquiry_count = Enquiry.query.filter_by(property_id=property.id).count()
    property.booking_count = Booking.query.filter_by(property_id=property.id).count()
    property.token_amount_received = _revenue(property.id)
    return property
