"""
Real-time push interface.

The web layer never talks to a socket server directly; ``create_app`` is handed
a notifier (or falls back to ``LoggingNotifier``) and handlers pass it into
the notification service.
"""
import logging

from flask import current_app

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = 'notification:new'


def user_room(user_id):
    return f'user:{user_id}'


class Notifier:
    def notify(self, room, event, payload):
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier for deployments without a push server"""

    def notify(self, room, event, payload):
        logger.info('Emitting %s to %s (%s)', event, room, payload.get('type', ''))


def get_notifier():
    return current_app.extensions['notifier']
