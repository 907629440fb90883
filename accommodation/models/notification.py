from datetime import datetime
from accommodation import db


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)  # recipient
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)  # who triggered it

    # enquiry_created, enquiry_replied, visit_requested, visit_responded, booking_requested,
    # booking_responded, new_consultation, consultation_updated, new_ticket, general
    type = db.Column(db.String(50), default='general', index=True)
    title = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=True)

    entity_id = db.Column(db.Integer, nullable=True)
    entity_model = db.Column(db.String(50), nullable=True)

    priority = db.Column(db.String(10), default='normal')  # low, normal, high
    read = db.Column(db.Boolean, default=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.Index('ix_notifications_user_created', 'user_id', 'created_at'),)

    def mark_read(self):
        self.read = True

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'actor_id': self.actor_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'entity': {'id': self.entity_id, 'model': self.entity_model} if self.entity_id else None,
            'priority': self.priority,
            'read': self.read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
