"""
In-app notifications.

Notifications are written in the caller's transaction with ``queue`` and only
pushed with ``publish`` once that transaction has committed. Pushing is
best-effort: a failing notifier is logged and the state change stands.
"""
import logging

from accommodation import db
from accommodation.models.notification import Notification
from accommodation.services.realtime import NOTIFICATION_EVENT, user_room

logger = logging.getLogger(__name__)


def queue(user_id, type, title, message, actor=None, entity=None, priority='normal'):
    notification = Notification(
        user_id=user_id,
        actor_id=actor.id if actor is not None else None,
        type=type,
        title=title,
        message=message,
        entity_id=entity.id if entity is not None else None,
        entity_model=type_name(entity),
        priority=priority,
    )
    db.session.add(notification)
    return notification


def publish(notifier, *notifications):
    """Push committed notifications to their recipients' rooms"""
    delivered = 0
    for notification in notifications:
        if notification is None:
            continue
        try:
            notifier.notify(user_room(notification.user_id), NOTIFICATION_EVENT, notification.to_dict())
            delivered += 1
        except Exception:
            logger.warning('Real-time delivery of notification %s to user %s failed',
                           notification.id, notification.user_id, exc_info=True)
    return delivered


def type_name(entity):
    return type(entity).__name__ if entity is not None else None
