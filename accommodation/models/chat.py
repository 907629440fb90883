from datetime import datetime
from accommodation import db

CHAT_STATUSES = ['active', 'waiting', 'closed']


class Chat(db.Model):
    __tablename__ = 'chats'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    agent_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    status = db.Column(db.String(20), default='waiting')
    subject = db.Column(db.String(255), nullable=True)
    closed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', foreign_keys=[user_id])
    agent = db.relationship('User', foreign_keys=[agent_id])
    messages = db.relationship('ChatMessage', backref='chat', lazy='select',
                               cascade='all, delete-orphan', order_by='ChatMessage.created_at')

    def participants(self):
        return {pid for pid in (self.user_id, self.agent_id) if pid is not None}

    def to_dict(self):
        return {
            'id': self.id,
            'user': self.user.summary() if self.user else None,
            'agent': self.agent.summary() if self.agent else None,
            'status': self.status,
            'subject': self.subject,
            'messages': [m.to_dict() for m in self.messages],
            'closed_at': self.closed_at.isoformat() if self.closed_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ChatMessage(db.Model):
    __tablename__ = 'chat_messages'

    id = db.Column(db.Integer, primary_key=True)
    chat_id = db.Column(db.Integer, db.ForeignKey('chats.id', ondelete='CASCADE'), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
