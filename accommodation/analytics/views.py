"""
Unique view counting for property detail pages.

Signed-in viewers are counted once per property, ever. Anonymous viewers are
keyed on their IP and counted again once the dedup window has passed. Owners
looking at their own listings are never counted.
"""
import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from accommodation import db
from accommodation.models.property import PropertyView

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_HOURS = 24


def dedup_window():
    hours = current_app.config.get('VIEW_DEDUP_WINDOW_HOURS', DEFAULT_WINDOW_HOURS)
    return timedelta(hours=float(hours))


def record_view(property, viewer=None, ip_address=None, now=None):
    """Count a detail view of ``property``; returns True when the counter moved"""
    now = now or datetime.utcnow()

    if viewer is not None:
        if viewer.id == property.owner_id:
            return False
        seen = PropertyView.query.filter_by(property_id=property.id, user_id=viewer.id).first()
    else:
        if not ip_address:
            logger.debug('Anonymous view of property %s without an address, not counted', property.id)
            return False
        seen = PropertyView.query.filter(
            PropertyView.property_id == property.id,
            PropertyView.user_id.is_(None),
            PropertyView.ip_address == ip_address,
            PropertyView.viewed_at > now - dedup_window(),
        ).first()

    if seen is not None:
        return False

    db.session.add(PropertyView(
        property_id=property.id,
        user_id=viewer.id if viewer is not None else None,
        ip_address=ip_address,
        viewed_at=now,
    ))
    try:
        db.session.flush()
    except IntegrityError:
        # A concurrent request already recorded this viewer
        db.session.rollback()
        return False

    property.increment('view_count')
    return True


def prune_anonymous_views(now=None):
    """Delete anonymous dedup rows that fell out of the window; returns the number removed"""
    cutoff = (now or datetime.utcnow()) - dedup_window()
    removed = PropertyView.query.filter(
        PropertyView.user_id.is_(None),
        PropertyView.viewed_at <= cutoff,
    ).delete(synchronize_session=False)
    logger.info('Pruned %s anonymous property views older than %s', removed, cutoff)
    return removed
