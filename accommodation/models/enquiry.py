from accommodation import db
from datetime import datetime

class Enquiry(db.Model):
    __tablename__ = 'enquiries'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    subject = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='new') # new, replied, closed

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    property = db.relationship('Property', backref=db.backref('enquiries', lazy='dynamic', cascade='all, delete-orphan'))
    user = db.relationship('User', foreign_keys=[user_id], backref=db.backref('enquiries_made', lazy='dynamic'))
    owner = db.relationship('User', foreign_keys=[owner_id])
    replies = db.relationship('EnquiryReply', backref='enquiry', lazy='select',
                              cascade='all, delete-orphan', order_by='EnquiryReply.created_at')

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'property': {
                'id': self.property.id,
                'title': self.property.title,
                'image': self.property.images[0] if self.property.images else None,
            } if self.property else None,
            'user': self.user.summary() if self.user else None,
            'owner': self.owner.summary() if self.owner else None,
            'subject': self.subject,
            'message': self.message,
            'status': self.status,
            'replies': [r.to_dict() for r in self.replies],
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class EnquiryReply(db.Model):
    __tablename__ = 'enquiry_replies'

    id = db.Column(db.Integer, primary_key=True)
    enquiry_id = db.Column(db.Integer, db.ForeignKey('enquiries.id', ondelete='CASCADE'), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
