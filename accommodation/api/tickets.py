import logging
from datetime import datetime
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from accommodation import db
from accommodation.models.communication_log import CommunicationLog
from accommodation.models.ticket import Ticket, TicketMessage
from accommodation.models.user import Role, User
from accommodation.schemas.support import TicketAssign, TicketCreate, TicketMessageCreate, TicketStatusUpdate
from accommodation.services import notifications
from accommodation.services.realtime import get_notifier
from accommodation.utils.decorators import capability_required, get_current_user
from accommodation.utils.errors import ApiError, Forbidden, NotFound, ServerFault, ValidationError
from accommodation.utils.permissions import Capability
from accommodation.utils.queries import get_or_404
from accommodation.utils.validators import parse_request

logger = logging.getLogger(__name__)

tickets_bp = Blueprint('tickets', __name__)


def _visible_ticket(ticket_id, user):
    ticket = get_or_404(Ticket, ticket_id, 'Ticket not found')
    if not ticket.visible_to(user):
        raise Forbidden('Permission denied')
    return ticket


@tickets_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@capability_required(Capability.OPEN_TICKET)
def create_ticket():
    """Open a support ticket; every support agent is notified"""
    user = get_current_user()
    data = parse_request(TicketCreate)
    try:
        ticket = Ticket(user_id=user.id, **data.model_dump())
        db.session.add(ticket)
        db.session.flush()

        agents = User.query.filter(User.role.in_([Role.SUPPORT, Role.ADMIN]), User.is_active.is_(True)).all()
        notes = [
            notifications.queue(agent.id, 'new_ticket', f'New ticket: {ticket.subject}',
                                f'{ticket.category} / {ticket.priority}', actor=user, entity=ticket,
                                priority='high' if ticket.priority in ('high', 'urgent') else 'normal')
            for agent in agents
        ]
        CommunicationLog.log('ticket', user_id=user.id, direction='inbound', subject=ticket.subject,
                             content=ticket.description, related_to='opened', reference=ticket)
        db.session.commit()

    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        logger.exception('Failed to open ticket for user %s', user.id)
        raise ServerFault()

    notifications.publish(get_notifier(), *notes)
    return jsonify({'message': 'Ticket created', 'ticket': ticket.to_dict(include_messages=True)}), 201


@tickets_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
def get_tickets():
    """Support sees every ticket (filterable by status); users see their own"""
    user = get_current_user()
    query = Ticket.query if user.is_support() else Ticket.query.filter_by(user_id=user.id)

    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)

    tickets = query.order_by(Ticket.created_at.desc()).all()
    return jsonify({'tickets': [t.to_dict() for t in tickets]}), 200


@tickets_bp.route('/<int:ticket_id>', methods=['GET'])
@jwt_required()
def get_ticket(ticket_id):
    user = get_current_user()
    ticket = _visible_ticket(ticket_id, user)
    data = ticket.to_dict(include_messages=True)
    if not user.is_support():
        data['messages'] = [m for m in data['messages'] if not m['is_internal']]
    return jsonify({'ticket': data}), 200


@tickets_bp.route('/<int:ticket_id>/messages', methods=['POST'])
@jwt_required()
def add_message(ticket_id):
    user = get_current_user()
    ticket = _visible_ticket(ticket_id, user)
    data = parse_request(TicketMessageCreate)

    if ticket.status == 'closed':
        raise ValidationError.for_field('status', 'Ticket is closed')

    # Internal notes are for staff only
    internal = data.is_internal and user.is_support()
    message = TicketMessage(ticket_id=ticket.id, sender_id=user.id, message=data.message, is_internal=internal)
    db.session.add(message)

    note = None
    if user.is_support() and not internal:
        ticket.status = 'waiting'
        note = notifications.queue(ticket.user_id, 'general', f'Reply on ticket: {ticket.subject}',
                                   data.message[:200], actor=user, entity=ticket)
    elif not user.is_support() and ticket.status == 'waiting':
        ticket.status = 'open'
    db.session.commit()

    notifications.publish(get_notifier(), note)
    return jsonify({'message': message.to_dict()}), 201


@tickets_bp.route('/<int:ticket_id>/status', methods=['PUT'])
@jwt_required()
@capability_required(Capability.HANDLE_SUPPORT)
def update_status(ticket_id):
    ticket = get_or_404(Ticket, ticket_id, 'Ticket not found')
    data = parse_request(TicketStatusUpdate)

    ticket.status = data.status
    ticket.resolved_at = datetime.utcnow() if data.status in ('resolved', 'closed') else None
    db.session.commit()
    return jsonify({'ticket': ticket.to_dict()}), 200


@tickets_bp.route('/<int:ticket_id>/assign', methods=['PUT'])
@jwt_required()
@capability_required(Capability.HANDLE_SUPPORT)
def assign_ticket(ticket_id):
    ticket = get_or_404(Ticket, ticket_id, 'Ticket not found')
    data = parse_request(TicketAssign)

    assignee = db.session.get(User, data.assignee_id)
    if assignee is None or not assignee.is_support():
        raise NotFound('Support agent not found')

    ticket.assigned_to = assignee.id
    if ticket.status == 'open':
        ticket.status = 'in_progress'
    note = notifications.queue(assignee.id, 'general', f'Ticket assigned: {ticket.subject}',
                               'A ticket was assigned to you', entity=ticket)
    db.session.commit()

    notifications.publish(get_notifier(), note)
    return jsonify({'ticket': ticket.to_dict()}), 200
