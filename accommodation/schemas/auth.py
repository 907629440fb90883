from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, Field

from accommodation.schemas.base import RequestSchema, SafeStr
from accommodation.utils.validators import validate_email, validate_password, validate_phone

# Staff accounts are created by an admin, never through sign-up
SELF_SERVICE_ROLES = Literal['tenant', 'owner', 'expert']


def _email(value):
    value = value.lower()
    if not validate_email(value):
        raise ValueError('Invalid email address')
    return value


def _phone(value):
    if value and not validate_phone(value):
        raise ValueError('Invalid phone number')
    return value or None


def _password(value):
    if not validate_password(value):
        raise ValueError('Password must be at least 8 characters long')
    return value


Email = Annotated[str, AfterValidator(_email)]
Phone = Annotated[str, AfterValidator(_phone)]
Password = Annotated[str, AfterValidator(_password)]


class RegisterRequest(RequestSchema):
    name: SafeStr = Field(min_length=2, max_length=255)
    email: Email
    password: Password
    phone: Optional[Phone] = None
    role: SELF_SERVICE_ROLES = 'tenant'
    occupation: Optional[SafeStr] = None
    business_name: Optional[SafeStr] = None


class LoginRequest(RequestSchema):
    email: Email
    password: str = Field(min_length=1)


class ProfileUpdate(RequestSchema):
    name: Optional[SafeStr] = Field(default=None, min_length=2, max_length=255)
    phone: Optional[Phone] = None
    occupation: Optional[SafeStr] = None
    business_name: Optional[SafeStr] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    whatsapp_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None


class ChangePasswordRequest(RequestSchema):
    current_password: str = Field(min_length=1)
    new_password: Password


class AccountDelete(RequestSchema):
    password: str = Field(min_length=1)


class RoleUpdate(RequestSchema):
    role: Literal['tenant', 'owner', 'expert', 'support', 'admin']


class StatusUpdate(RequestSchema):
    is_active: bool
