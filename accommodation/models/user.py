import enum
from datetime import datetime
from accommodation import db
from accommodation.models.lifecycle import enum_values
import bcrypt


class Role(str, enum.Enum):
    TENANT = 'tenant'
    OWNER = 'owner'
    EXPERT = 'expert'
    SUPPORT = 'support'
    ADMIN = 'admin'


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.Enum(Role, name='user_role_enum', values_callable=enum_values),
                     nullable=False, default=Role.TENANT)
    is_active = db.Column(db.Boolean, default=True)

    # Tenant specific fields
    occupation = db.Column(db.String(255), nullable=True)

    # Owner specific fields
    business_name = db.Column(db.String(255), nullable=True)

    # Notification preferences
    email_notifications = db.Column(db.Boolean, default=True)
    sms_notifications = db.Column(db.Boolean, default=False)
    whatsapp_notifications = db.Column(db.Boolean, default=False)
    push_notifications = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    properties = db.relationship('Property', backref='owner', lazy='dynamic',
                                 foreign_keys='Property.owner_id')
    visits = db.relationship('Visit', backref='tenant', lazy='dynamic',
                             foreign_keys='Visit.tenant_id')

    def set_password(self, password):
        """Hash and set user password"""
        salt = bcrypt.gensalt(rounds=12)
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        if not self.password_hash:
            return False
        return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))

    def is_admin(self):
        return self.role == Role.ADMIN

    def is_owner(self):
        return self.role == Role.OWNER

    def is_tenant(self):
        return self.role == Role.TENANT

    def is_support(self):
        return self.role in (Role.SUPPORT, Role.ADMIN)

    def to_dict(self, include_private=False):
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'phone': self.phone,
            'role': self.role.value if self.role else None,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if self.is_owner():
            data['business_name'] = self.business_name
        elif self.is_tenant():
            data['occupation'] = self.occupation

        if include_private:
            data['notification_preferences'] = {
                'email': self.email_notifications,
                'sms': self.sms_notifications,
                'whatsapp': self.whatsapp_notifications,
                'push': self.push_notifications,
            }
            data['last_login_at'] = self.last_login_at.isoformat() if self.last_login_at else None

        return data

    def summary(self):
        """Public contact card used when embedding a user in other payloads"""
        return {'id': self.id, 'name': self.name, 'email': self.email, 'phone': self.phone}

    def __repr__(self):
        return f'<User {self.email}>'
