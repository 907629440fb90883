import re
from email_validator import validate_email as email_validator, EmailNotValidError
from flask import request
from pydantic import ValidationError as SchemaError

from accommodation.utils.errors import ValidationError

def validate_email(email):
    """Validate email address"""
    try:
        email_validator(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False

def validate_phone(phone):
    """Validate a phone number in local (07XX...) or international form"""
    # Remove spaces and dashes
    phone = re.sub(r'[\s\-]', '', phone)

    patterns = [
        r'^\+\d{9,15}$',
        r'^0[17]\d{8}$',
    ]

    return any(re.match(pattern, phone) for pattern in patterns)

def validate_password(password):
    """Validate password strength"""
    if not password:
        return False

    # Minimum 8 characters
    if len(password) < 8:
        return False

    return True

def format_phone_number(phone, country_code='254'):
    """Format phone number to international format (+<country><number>)"""
    # Remove spaces and dashes
    phone = re.sub(r'[\s\-]', '', phone)

    if phone.startswith('0'):
        phone = f'+{country_code}' + phone[1:]
    elif not phone.startswith('+'):
        phone = '+' + phone

    return phone

def _field_name(location):
    return '.'.join(str(part) for part in location) or 'body'

def parse_request(schema_cls, data=None):
    """
    Validate a JSON body (or ``data``) against a pydantic schema.

    Schema errors are turned into a 400 ``ValidationError`` listing each bad
    field.
    """
    payload = request.get_json(silent=True) if data is None else data
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')

    try:
        return schema_cls.model_validate(payload)
    except SchemaError as e:
        errors = [{'field': _field_name(err['loc']), 'message': err['msg']} for err in e.errors()]
        message = errors[0]['message'] if len(errors) == 1 else 'Validation failed'
        raise ValidationError(message, errors=errors)
