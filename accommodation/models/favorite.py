from accommodation import db
from datetime import datetime

class Favorite(db.Model):
    __tablename__ = 'favorites'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Ensure a user can only favorite a property once
    __table_args__ = (db.UniqueConstraint('user_id', 'property_id', name='uq_user_property_favorite'),)

    property = db.relationship('Property', backref=db.backref('favorites', lazy='dynamic', cascade='all, delete-orphan'))
    user = db.relationship('User', backref=db.backref('favorites', lazy='dynamic'))

    def to_dict(self, include_property=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'property_id': self.property_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_property and self.property:
            data['property'] = self.property.to_dict(include_owner=True)
        return data
