from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.notification import Notification
from accommodation.utils.decorators import get_current_user
from accommodation.utils.errors import NotFound

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
def get_notifications():
    """Newest first; ``?unread=true`` limits to unread ones"""
    user = get_current_user()
    query = Notification.query.filter_by(user_id=user.id)
    if request.args.get('unread', '').lower() == 'true':
        query = query.filter_by(read=False)

    items = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(100).all()
    unread = Notification.query.filter_by(user_id=user.id, read=False).count()
    return jsonify({'notifications': [n.to_dict() for n in items], 'unread_count': unread}), 200


@notifications_bp.route('/<int:notification_id>/read', methods=['PUT'])
@jwt_required()
def mark_read(notification_id):
    user = get_current_user()
    notification = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if notification is None:
        raise NotFound('Notification not found')

    notification.mark_read()
    db.session.commit()
    return jsonify({'notification': notification.to_dict()}), 200


@notifications_bp.route('/read-all', methods=['PUT'])
@jwt_required()
def mark_all_read():
    user = get_current_user()
    updated = Notification.query.filter_by(user_id=user.id, read=False).update(
        {Notification.read: True}, synchronize_session=False
    )
    db.session.commit()
    return jsonify({'message': 'All notifications marked as read', 'updated': updated}), 200
