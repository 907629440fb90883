from datetime import datetime
from accommodation import db
from accommodation.models.lifecycle import ListingState, enum_values

PROPERTY_TYPES = ['1BHK', '2BHK', '3BHK', 'Studio', 'Penthouse', 'Villa']
FEATURES = ['WiFi', 'AC', 'Heating', 'Balcony', 'Garden', 'Terrace', 'Furnished',
            'Unfurnished', 'Parking', 'Security']
FACILITIES = ['Gym', 'Swimming Pool', 'Playground', 'Garden', 'Lift', 'Power Backup',
              'Security', 'Parking', 'CCTV', 'Maintenance']
FURNISHING_STATUSES = ['None', 'Half', 'Fully']
AVAILABILITY_STATUSES = ['Available', 'Rented', 'Under Maintenance']


class Property(db.Model):
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    # Pricing
    price = db.Column(db.Numeric(12, 2), nullable=False)
    maintenance = db.Column(db.Numeric(12, 2), default=0)
    deposit = db.Column(db.Numeric(12, 2), nullable=True)

    # Location
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(100), nullable=False, index=True)
    state = db.Column(db.String(100), nullable=False)
    zip_code = db.Column(db.String(20), nullable=True)

    # Details
    property_type = db.Column(db.String(20), nullable=False)
    features = db.Column(db.JSON, default=list)
    facilities = db.Column(db.JSON, default=list)
    bachelors_allowed = db.Column(db.Boolean, default=False)
    furnishing_status = db.Column(db.String(10), default='None')
    images = db.Column(db.JSON, default=list)
    area = db.Column(db.Integer, nullable=False)
    bedrooms = db.Column(db.Integer, nullable=False)
    bathrooms = db.Column(db.Integer, nullable=False)

    # Availability
    availability = db.Column(db.String(30), default='Available')
    availability_date = db.Column(db.Date, nullable=True)

    # Lease terms and owner FAQ
    lease_minimum_duration = db.Column(db.String(255), default='')
    lease_renewal_terms = db.Column(db.String(255), default='')
    faq = db.Column(db.JSON, default=list)

    # active -> hidden (owner toggled visibility) -> archived (deleted by owner)
    listing_state = db.Column(db.Enum(ListingState, name='listing_state_enum', values_callable=enum_values),
                              nullable=False, default=ListingState.ACTIVE, index=True)

    # Statistics
    view_count = db.Column(db.Integer, default=0, nullable=False)
    enquiry_count = db.Column(db.Integer, default=0, nullable=False)
    booking_count = db.Column(db.Integer, default=0, nullable=False)
    favorite_count = db.Column(db.Integer, default=0, nullable=False)
    token_amount_received = db.Column(db.Numeric(12, 2), default=0)

    # Relationships
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    visits = db.relationship('Visit', backref='property', lazy='dynamic')

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_listed(self):
        """Listed properties are shown to tenants and included in analytics"""
        return self.listing_state == ListingState.ACTIVE

    def is_archived(self):
        return self.listing_state == ListingState.ARCHIVED

    def archive(self):
        self.listing_state = ListingState.ARCHIVED

    def set_visibility(self, visible):
        if self.is_archived():
            return False
        self.listing_state = ListingState.ACTIVE if visible else ListingState.HIDDEN
        return True

    def can_be_managed_by(self, user):
        """Check if user can edit this property"""
        if user is None:
            return False
        if user.is_admin():
            return True
        return user.id == self.owner_id

    def increment(self, counter, amount=1):
        """Atomically bump one of the statistics columns"""
        column = getattr(Property, counter)
        Property.query.filter_by(id=self.id).update(
            {column: column + amount}, synchronize_session=False
        )

    def analytics(self):
        return {
            'views': self.view_count or 0,
            'enquiries': self.enquiry_count or 0,
            'bookings': self.booking_count or 0,
            'favorites': self.favorite_count or 0,
        }

    def to_dict(self, include_owner=False):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'price': float(self.price) if self.price is not None else None,
            'maintenance': float(self.maintenance) if self.maintenance is not None else 0,
            'deposit': float(self.deposit) if self.deposit is not None else None,
            'location': {
                'address': self.address,
                'city': self.city,
                'state': self.state,
                'zip_code': self.zip_code,
            },
            'property_type': self.property_type,
            'features': self.features or [],
            'facilities': self.facilities or [],
            'bachelors_allowed': self.bachelors_allowed,
            'furnishing_status': self.furnishing_status,
            'images': self.images or [],
            'area': self.area,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'availability': self.availability,
            'availability_date': self.availability_date.isoformat() if self.availability_date else None,
            'lease_terms': {
                'minimum_duration': self.lease_minimum_duration or '',
                'renewal_terms': self.lease_renewal_terms or '',
            },
            'faq': self.faq or [],
            'listing_state': self.listing_state.value if self.listing_state else None,
            'analytics': self.analytics(),
            'token_amount_received': float(self.token_amount_received or 0),
            'owner_id': self.owner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_owner and self.owner:
            data['owner'] = self.owner.summary()

        return data

    def __repr__(self):
        return f'<Property {self.title}>'


class PropertyView(db.Model):
    """Dedup record for the view counter; one row per identified viewer"""
    __tablename__ = 'property_views'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    viewed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('property_id', 'user_id', name='uq_property_view_user'),
        db.Index('ix_property_views_ip_window', 'property_id', 'ip_address', 'viewed_at'),
    )

    def __repr__(self):
        return f'<PropertyView {self.property_id} by {self.user_id or self.ip_address}>'
