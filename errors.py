class CitiZenError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ValidationError(CitiZenError):
    """Malformed or missing request fields."""

    status_code = 400
    default_message = 'Validation failed'

    def __init__(self, message=None, details=None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def for_field(cls, field, message):
        return cls(message, details=[{'field': field, 'message': message}])

    def to_dict(self):
        payload = super().to_dict()
        if self.details:
            payload['details'] = self.details
        return payload


class AuthenticationError(CitiZenError):
    status_code = 401
    default_message = 'Not authenticated'


class AuthorizationError(CitiZenError):
    status_code = 403
    default_message = 'Not authorized'


class NotFoundError(CitiZenError):
    status_code = 404
    default_message = 'Not found'


class DependencyError(CitiZenError):
    """A store or storage call failed. The message is logged, never returned."""

    status_code = 500
    default_message = 'Internal server error'

    def to_dict(self):
        return {'error': self.default_message}
