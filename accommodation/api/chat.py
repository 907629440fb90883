import logging
from datetime import datetime
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.chat import Chat, ChatMessage
from accommodation.models.communication_log import CommunicationLog
from accommodation.schemas.support import ChatMessageCreate, ChatStart, ChatStatusUpdate
from accommodation.services import notifications
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import get_current_user
from accommodation.utils.errors import Forbidden, ValidationError
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

chat_bp = Blueprint('chat', __name__)


def _chat_for(chat_id, user):
    chat = get_or_404(Chat, chat_id, 'Chat not found')
    if user.id not in chat.participants() and not user.is_support():
        raise Forbidden('Permission denied')
    return chat


@chat_bp.route('/sessions', methods=['POST'])
@jwt_required()
def start_chat():
    """Start a live chat; reuses the user's open session if there is one"""
    user = get_current_user()
    data = parse_request(ChatStart)

    chat = Chat.query.filter(Chat.user_id == user.id, Chat.status != 'closed').first()
    created = chat is None
    if created:
        chat = Chat(user_id=user.id, subject=data.subject, status='waiting')
        db.session.add(chat)
        db.session.flush()

    if data.message:
        db.session.add(ChatMessage(chat_id=chat.id, sender_id=user.id, message=data.message))
    CommunicationLog.log('chat', user_id=user.id, direction='inbound', subject=data.subject,
                         content=data.message, related_to='started' if created else 'resumed', reference=chat)
    db.session.commit()

    return jsonify({'chat': chat.to_dict()}), 201 if created else 200


@chat_bp.route('/<int:chat_id>/messages', methods=['POST'])
@jwt_required()
def send_message(chat_id):
    user = get_current_user()
    chat = _chat_for(chat_id, user)
    data = parse_request(ChatMessageCreate)

    if chat.status == 'closed':
        raise ValidationError.for_field('status', 'Chat is closed')

    # First agent to answer takes the chat
    if user.is_support() and user.id != chat.user_id and chat.agent_id is None:
        chat.agent_id = user.id
        chat.status = 'active'

    message = ChatMessage(chat_id=chat.id, sender_id=user.id, message=data.message)
    db.session.add(message)

    note = None
    recipient = chat.agent_id if user.id == chat.user_id else chat.user_id
    if recipient is not None:
        note = notifications.queue(recipient, 'general', 'New chat message', data.message[:200],
                                   actor=user, entity=chat, priority='low')
    db.session.commit()

    notifications.publish(get_notifier(), note)
    return jsonify({'message': message.to_dict()}), 201


@chat_bp.route('/<int:chat_id>/status', methods=['PUT'])
@jwt_required()
def update_status(chat_id):
    user = get_current_user()
    chat = _chat_for(chat_id, user)
    data = parse_request(ChatStatusUpdate)

    chat.status = data.status
    chat.closed_at = datetime.utcnow() if data.status == 'closed' else None
    db.session.commit()
    return jsonify({'chat': chat.to_dict()}), 200
