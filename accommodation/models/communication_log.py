from datetime import datetime
from accommodation import db
from flask import has_request_context, request

COMMUNICATION_TYPES = ['chat', 'ticket', 'email', 'whatsapp', 'notification',
                       'consultation', 'faq', 'expert_profile']


class CommunicationLog(db.Model):
    __tablename__ = 'communication_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    type = db.Column(db.String(30), nullable=False, index=True)
    direction = db.Column(db.String(10), default='outbound')  # inbound, outbound
    subject = db.Column(db.String(255), nullable=True)
    content = db.Column(db.Text, nullable=True)

    # What the message was about
    related_to = db.Column(db.String(50), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)
    reference_model = db.Column(db.String(50), nullable=True)

    status = db.Column(db.String(20), default='sent')  # sent, failed, skipped
    channel_id = db.Column(db.String(255), nullable=True)  # provider message id
    details = db.Column(db.JSON, default=dict)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    @staticmethod
    def log(type, user_id=None, subject=None, content=None, status='sent', direction='outbound',
            related_to=None, reference=None, channel_id=None, details=None):
        """Record a communication; the caller owns the transaction"""
        entry = CommunicationLog(
            user_id=user_id,
            type=type,
            direction=direction,
            subject=subject,
            content=content,
            related_to=related_to,
            reference_id=reference.id if reference is not None else None,
            reference_model=type_name(reference),
            status=status,
            channel_id=channel_id,
            details=details or {},
        )
        if has_request_context():
            entry.ip_address = request.remote_addr
            entry.user_agent = request.user_agent.string if request.user_agent else None
        db.session.add(entry)
        return entry

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'direction': self.direction,
            'subject': self.subject,
            'content': self.content,
            'related_to': self.related_to,
            'reference': {'id': self.reference_id, 'model': self.reference_model} if self.reference_id else None,
            'status': self.status,
            'channel_id': self.channel_id,
            'details': self.details or {},
            'ip_address': self.ip_address,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


def type_name(obj):
    return type(obj).__name__ if obj is not None else None
