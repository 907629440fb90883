class ApiError(Exception):
    """Base class for errors that are rendered as JSON responses"""
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors or []

    def to_dict(self):
        data = {'message': self.message}
        if self.errors:
            data['errors'] = self.errors
        return data


class ValidationError(ApiError):
    status_code = 400
    default_message = 'Validation failed'

    @classmethod
    def for_field(cls, field, message):
        return cls(message, errors=[{'field': field, 'message': message}])


class NotFound(ApiError):
    status_code = 404
    default_message = 'Resource not found'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Access denied'


class SlotUnavailable(ApiError):
    status_code = 409
    default_message = 'Selected time slot is not available'


class ServerFault(ApiError):
    status_code = 500

    def to_dict(self):
        # Never expose internals to the caller
        return {'message': self.default_message}
