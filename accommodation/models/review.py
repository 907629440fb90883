from datetime import datetime
from accommodation import db
from accommodation.models.lifecycle import ReviewState, enum_values


class Review(db.Model):
    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    rating = db.Column(db.Integer, nullable=False)  # 1-5
    comment = db.Column(db.Text, nullable=False)
    state = db.Column(db.Enum(ReviewState, name='review_state_enum', values_callable=enum_values),
                      nullable=False, default=ReviewState.ACTIVE)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # One review per tenant and property
    __table_args__ = (db.UniqueConstraint('tenant_id', 'property_id', name='uq_tenant_property_review'),)

    tenant = db.relationship('User', foreign_keys=[tenant_id])
    owner = db.relationship('User', foreign_keys=[owner_id])
    property = db.relationship('Property', backref=db.backref('reviews', lazy='dynamic'))

    def is_active(self):
        return self.state == ReviewState.ACTIVE

    def archive(self):
        self.state = ReviewState.ARCHIVED

    def to_dict(self, include_property=False):
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'rating': self.rating,
            'comment': self.comment,
            'tenant': {'id': self.tenant.id, 'name': self.tenant.name} if self.tenant else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_property and self.property:
            data['property'] = {
                'id': self.property.id,
                'title': self.property.title,
                'city': self.property.city,
            }
        return data

    def __repr__(self):
        return f'<Review {self.id} ({self.rating})>'
