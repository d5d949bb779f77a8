from rest_framework import exceptions, status


class ValidationError(exceptions.ValidationError):
    """Missing or invalid required input."""


class StateError(exceptions.APIException):
    """Operation attempted from the wrong lifecycle state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This action is not allowed in the current state.'
    default_code = 'invalid_state'


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The resource already exists.'
    default_code = 'conflict'


class NotFoundError(exceptions.NotFound):
    default_detail = 'Not found.'


class AuthorizationError(exceptions.PermissionDenied):
    default_detail = 'You do not have permission to perform this action.'


class ExternalServiceError(exceptions.APIException):
    """The backing store or the object store failed."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'An external service failed. Please try again.'
    default_code = 'external_service_error'


class SupersededRequestError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A newer request has superseded this one.'
    default_code = 'superseded'
