from datetime import datetime
from accommodation import db

FAQ_CATEGORIES = ['general', 'booking', 'payment', 'property', 'account', 'technical']


class FAQ(db.Model):
    __tablename__ = 'faqs'

    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.String(500), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), default='general', index=True)
    keywords = db.Column(db.JSON, default=list)
    is_active = db.Column(db.Boolean, default=True)

    views = db.Column(db.Integer, default=0, nullable=False)
    helpful = db.Column(db.Integer, default=0, nullable=False)
    not_helpful = db.Column(db.Integer, default=0, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def matches(self, term):
        term = term.lower()
        haystack = [self.question or '', self.answer or ''] + list(self.keywords or [])
        return any(term in text.lower() for text in haystack)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'answer': self.answer,
            'category': self.category,
            'keywords': self.keywords or [],
            'is_active': self.is_active,
            'views': self.views or 0,
            'helpful': self.helpful or 0,
            'not_helpful': self.not_helpful or 0,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
