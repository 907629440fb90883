from datetime import datetime
from accommodation import db

BOOKING_STATUSES = ['pending', 'confirmed', 'rejected', 'cancelled', 'completed']

BOOKING_TRANSITIONS = {
    'pending': {'confirmed', 'rejected', 'cancelled'},
    'confirmed': {'completed', 'cancelled'},
}

# Bookings in these states no longer count towards revenue
INACTIVE_BOOKING_STATUSES = ('rejected', 'cancelled')


class Booking(db.Model):
    __tablename__ = 'bookings'

    id = db.Column(db.Integer, primary_key=True)

    # Tenant who requested the booking
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    status = db.Column(db.String(20), default='pending', index=True)

    # Stay details
    move_in_date = db.Column(db.Date, nullable=False)
    move_out_date = db.Column(db.Date, nullable=False)
    months = db.Column(db.Integer, nullable=False, default=1)

    # Amounts
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    token_amount = db.Column(db.Numeric(12, 2), default=0)
    payment_reference = db.Column(db.String(100), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    owner_response = db.Column(db.Text, nullable=True)
    responded_at = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', foreign_keys=[user_id], backref=db.backref('bookings_made', lazy='dynamic'))
    owner = db.relationship('User', foreign_keys=[owner_id])
    property = db.relationship('Property', backref=db.backref('bookings', lazy='dynamic'))

    def is_active(self):
        return self.status not in INACTIVE_BOOKING_STATUSES

    def respond(self, status, message=None):
        """Record the owner's answer to the booking request"""
        self.status = status
        self.owner_response = message or ''
        self.responded_at = datetime.utcnow()

    def to_dict(self, include_user=False, include_property=False):
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'user_id': self.user_id,
            'owner_id': self.owner_id,
            'status': self.status,
            'move_in_date': self.move_in_date.isoformat() if self.move_in_date else None,
            'move_out_date': self.move_out_date.isoformat() if self.move_out_date else None,
            'months': self.months,
            'total_amount': float(self.total_amount) if self.total_amount is not None else None,
            'token_amount': float(self.token_amount or 0),
            'notes': self.notes,
            'owner_response': self.owner_response,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_user and self.user:
            data['user'] = self.user.summary()

        if include_property and self.property:
            data['property'] = {
                'id': self.property.id,
                'title': self.property.title,
                'price': float(self.property.price) if self.property.price is not None else None,
                'image': self.property.images[0] if self.property.images else None,
            }

        return data

    def __repr__(self):
        return f'<Booking {self.id}>'
