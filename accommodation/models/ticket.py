from datetime import datetime
from accommodation import db

TICKET_CATEGORIES = ['technical', 'billing', 'property', 'booking', 'account', 'other']
TICKET_PRIORITIES = ['low', 'medium', 'high', 'urgent']
TICKET_STATUSES = ['open', 'in_progress', 'waiting', 'resolved', 'closed']


class Ticket(db.Model):
    __tablename__ = 'tickets'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)

    subject = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), default='other')
    priority = db.Column(db.String(10), default='medium')
    status = db.Column(db.String(20), default='open', index=True)

    resolved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', foreign_keys=[user_id])
    assignee = db.relationship('User', foreign_keys=[assigned_to])
    messages = db.relationship('TicketMessage', backref='ticket', lazy='select',
                               cascade='all, delete-orphan', order_by='TicketMessage.created_at')

    def visible_to(self, user):
        return user.is_support() or user.id == self.user_id

    def to_dict(self, include_messages=False):
        data = {
            'id': self.id,
            'user': self.user.summary() if self.user else None,
            'assigned_to': self.assignee.summary() if self.assignee else None,
            'subject': self.subject,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'status': self.status,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_messages:
            data['messages'] = [m.to_dict() for m in self.messages]
        return data


class TicketMessage(db.Model):
    __tablename__ = 'ticket_messages'

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_internal = db.Column(db.Boolean, default=False)  # staff-only note
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'message': self.message,
            'is_internal': self.is_internal,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
