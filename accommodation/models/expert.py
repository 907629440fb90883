from datetime import datetime
from accommodation import db
from accommodation.analytics.aggregator import average_rating
from accommodation.models.mixins import SlotHolderMixin
from accommodation.scheduling.overlap import CONSULTATION_BLOCKING_STATUSES, TimeWindow

# Status: scheduled, confirmed, completed, cancelled, rejected, no-show
CONSULTATION_TRANSITIONS = {
    'scheduled': {'confirmed', 'cancelled', 'rejected'},
    'confirmed': {'completed', 'cancelled', 'no-show'},
    'cancelled': {'scheduled'},
}


class Expert(db.Model):
    __tablename__ = 'experts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)

    bio = db.Column(db.Text, nullable=True)
    expertise = db.Column(db.JSON, default=list)
    experience_years = db.Column(db.Integer, nullable=True)
    languages = db.Column(db.JSON, default=list)
    consultation_fee = db.Column(db.Numeric(12, 2), default=0)
    is_available = db.Column(db.Boolean, default=True)

    # Running totals for the public rating
    rating_total = db.Column(db.Integer, default=0)
    rating_count = db.Column(db.Integer, default=0)
    consultation_count = db.Column(db.Integer, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('expert_profile', uselist=False))
    availability = db.relationship('ExpertAvailability', backref='expert', lazy='select',
                                   cascade='all, delete-orphan',
                                   order_by='ExpertAvailability.day_of_week')

    def average_rating(self):
        return average_rating(self.rating_total or 0, self.rating_count or 0)

    def covers(self, on_date, window):
        """True when the weekly availability contains ``window`` on that date.

        Experts without published availability accept any time.
        """
        if not self.availability:
            return True
        # 0 = Sunday ... 6 = Saturday
        day_of_week = (on_date.weekday() + 1) % 7
        return any(slot.window.contains(window)
                   for slot in self.availability if slot.day_of_week == day_of_week)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user': self.user.summary() if self.user else None,
            'bio': self.bio,
            'expertise': self.expertise or [],
            'experience_years': self.experience_years,
            'languages': self.languages or [],
            'consultation_fee': float(self.consultation_fee or 0),
            'is_available': self.is_available,
            'average_rating': self.average_rating(),
            'rating_count': self.rating_count or 0,
            'consultation_count': self.consultation_count or 0,
            'availability': [slot.to_dict() for slot in self.availability],
        }


class ExpertAvailability(db.Model):
    __tablename__ = 'expert_availability'

    id = db.Column(db.Integer, primary_key=True)
    expert_id = db.Column(db.Integer, db.ForeignKey('experts.id', ondelete='CASCADE'), nullable=False)
    day_of_week = db.Column(db.Integer, nullable=False)  # 0-6 (Sunday-Saturday)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    @property
    def window(self):
        return TimeWindow(self.start_time, self.end_time)

    def to_dict(self):
        return {
            'day_of_week': self.day_of_week,
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
        }


class ExpertConsultation(SlotHolderMixin, db.Model):
    __tablename__ = 'expert_consultations'

    blocking_statuses = CONSULTATION_BLOCKING_STATUSES

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    expert_id = db.Column(db.Integer, db.ForeignKey('experts.id'), nullable=False, index=True)

    consultation_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    active_slot = db.Column(db.Time, nullable=True)

    status = db.Column(db.String(20), default='scheduled', nullable=False)

    meeting_link = db.Column(db.String(500), nullable=True)
    meeting_platform = db.Column(db.String(20), nullable=True)  # zoom, google_meet, teams, other

    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_status = db.Column(db.String(20), default='pending')  # pending, paid, refunded, failed

    notes = db.Column(db.Text, nullable=True)
    rating = db.Column(db.Integer, nullable=True)
    review = db.Column(db.Text, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', foreign_keys=[user_id])
    expert = db.relationship('Expert', backref=db.backref('consultations', lazy='dynamic'))

    __table_args__ = (
        db.UniqueConstraint('expert_id', 'consultation_date', 'active_slot', name='uq_consultation_active_slot'),
        db.Index('ix_consultations_expert_status', 'expert_id', 'status'),
    )

    @property
    def duration_minutes(self):
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'expert_id': self.expert_id,
            'date': self.consultation_date.isoformat() if self.consultation_date else None,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'duration_minutes': self.duration_minutes,
            'status': self.status,
            'meeting_link': self.meeting_link,
            'meeting_platform': self.meeting_platform,
            'amount': float(self.amount or 0),
            'payment_status': self.payment_status,
            'notes': self.notes,
            'rating': self.rating,
            'review': self.review,
            'cancellation_reason': self.cancellation_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<ExpertConsultation {self.id}>'
