from datetime import datetime
from accommodation import db
from accommodation.models.mixins import SlotHolderMixin
from accommodation.scheduling.overlap import VISIT_BLOCKING_STATUSES

# Status: pending, confirmed, rejected, cancelled, completed, no-show
VISIT_TRANSITIONS = {
    'pending': {'confirmed', 'rejected', 'cancelled'},
    'confirmed': {'completed', 'cancelled', 'no-show'},
}


class Visit(SlotHolderMixin, db.Model):
    __tablename__ = 'visits'

    blocking_statuses = VISIT_BLOCKING_STATUSES

    id = db.Column(db.Integer, primary_key=True)

    # Relationships
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Visit Details
    visit_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    time_slot = db.Column(db.String(50), nullable=True)
    active_slot = db.Column(db.Time, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), default='pending', nullable=False)

    # Owner reply
    owner_response = db.Column(db.Text, nullable=True)
    responded_at = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    __table_args__ = (
        db.UniqueConstraint('property_id', 'visit_date', 'active_slot', name='uq_visit_active_slot'),
    )

    def to_dict(self, include_property=False, include_tenant=False):
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'tenant_id': self.tenant_id,
            'visit_date': self.visit_date.isoformat() if self.visit_date else None,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'time_slot': self.time_slot,
            'notes': self.notes,
            'status': self.status,
            'owner_response': self.owner_response,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_property and self.property:
            data['property'] = {
                'id': self.property.id,
                'title': self.property.title,
                'location': f"{self.property.address}, {self.property.city}",
                'image': self.property.images[0] if self.property.images else None,
            }

        if include_tenant and self.tenant:
            data['tenant'] = self.tenant.summary()

        return data

    def __repr__(self):
        return f'<Visit {self.id}>'
