"""
Domain exceptions shared by every SVS app.

Each exception is a DRF ``APIException`` so that services can raise it and the
project exception handler (``apps.core.exception_handler``) turns it into the
uniform error body. ``default_code`` values are part of the API contract.

Exception Hierarchy:
    APIException
    ├── ResourceNotFoundError          404 resource_not_found
    ├── DuplicateResourceError         409 duplicate_resource
    ├── InvalidTransitionError         409 invalid_transition
    ├── ValidationFailureError         400 validation_failure
    ├── BusinessRuleError              400 business_rule_violation
    ├── ConfigurationFailureError      500 configuration_failure
    └── AuthenticationFailure          401 authentication_failed
        ├── InvalidCredentialsError    401 invalid_credentials
        ├── AccountDisabledError       403 account_disabled
        └── AccountLockedError         423 account_locked

Usage:
    from apps.core.exceptions import ResourceNotFoundError

    raise ResourceNotFoundError(f"Invoice {invoice_id} not found")
"""
from rest_framework.exceptions import APIException


class ResourceNotFoundError(APIException):
    """Requested entity does not exist."""
    status_code = 404
    default_detail = 'Resource not found.'
    default_code = 'resource_not_found'

    @classmethod
    def for_entity(cls, entity, identifier):
        return cls(f"{entity} not found with id: {identifier}")


class DuplicateResourceError(APIException):
    """A unique attribute (email, IMO number, code...) is already taken."""
    status_code = 409
    default_detail = 'Resource already exists.'
    default_code = 'duplicate_resource'

    def __init__(self, detail=None, code=None, field=None):
        super().__init__(detail, code)
        self.field = field

    @classmethod
    def for_field(cls, entity, field, value):
        return cls(f"{entity} with {field} '{value}' already exists", field=field)


class InvalidTransitionError(APIException):
    """Requested status change is not allowed from the current status."""
    status_code = 409
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'

    def __init__(self, current, requested, detail=None):
        self.current = current
        self.requested = requested
        if detail is None:
            detail = f"Cannot transition from {current} to {requested}"
        super().__init__(detail)


class ValidationFailureError(APIException):
    """Input violates a domain rule; ``details`` maps field names to messages."""
    status_code = 400
    default_detail = 'Validation failed.'
    default_code = 'validation_failure'

    def __init__(self, detail=None, details=None):
        super().__init__(detail)
        self.details = details or {}


class BusinessRuleError(APIException):
    """Operation is well-formed but not permitted in the entity's current state."""
    status_code = 400
    default_detail = 'Business rule violated.'
    default_code = 'business_rule_violation'


class ConfigurationFailureError(APIException):
    """System cannot satisfy the request; always fatal for the request."""
    status_code = 500
    default_detail = 'Configuration failure.'
    default_code = 'configuration_failure'


class AuthenticationFailure(APIException):
    """Base for login failures; the handler attaches a suggestion to these."""
    status_code = 401
    default_detail = 'Authentication failed.'
    default_code = 'authentication_failed'
    suggestion = {
        'endpoint': '/api/auth/login/',
        'action': 'retry',
        'message': 'Check your credentials and try again.',
    }


class InvalidCredentialsError(AuthenticationFailure):
    default_detail = 'Invalid email or password.'
    default_code = 'invalid_credentials'


class AccountDisabledError(AuthenticationFailure):
    status_code = 403
    default_detail = 'Account is disabled.'
    default_code = 'account_disabled'
    suggestion = {
        'endpoint': None,
        'action': 'contact_support',
        'message': 'Contact an administrator to reactivate your account.',
    }


class AccountLockedError(AuthenticationFailure):
    status_code = 423
    default_detail = 'Account is temporarily locked.'
    default_code = 'account_locked'
    suggestion = {
        'endpoint': None,
        'action': 'unlock_account',
        'message': 'Wait for the lock to expire or ask a manager to unlock the account.',
    }

    def __init__(self, detail=None, locked_until=None):
        super().__init__(detail)
        self.locked_until = locked_until


UNIQUE_VIOLATION_SQLSTATE = '23505'
UNIQUE_VIOLATION_MARKERS = ('UNIQUE constraint failed', 'duplicate key value', 'Duplicate entry')


def is_unique_violation(exc) -> bool:
    """True when a database ``IntegrityError`` reports a duplicate value for a unique column."""
    cause = exc.__cause__
    sqlstate = getattr(cause, 'pgcode', None) or getattr(cause, 'sqlstate', None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    message = str(exc)
    return any(marker in message for marker in UNIQUE_VIOLATION_MARKERS)
