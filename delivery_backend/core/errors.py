"""
Domain error taxonomy.

Services raise these; the API layer renders them through a single
exception handler registered in ``delivery_backend.main``.
"""

from fastapi import status


class DeliveryError(Exception):
    """Base class for business-rule rejections."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(DeliveryError):
    """The referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class AuthorizationDenied(DeliveryError):
    """The actor lacks permission for the requested action."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class InvalidState(DeliveryError):
    """The action is not legal given the current order or user state."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"


class ValidationError(DeliveryError):
    """Malformed or inconsistent input that passed schema validation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class Conflict(DeliveryError):
    """A concurrent mutation changed the record between read and write."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StorageError(DeliveryError):
    """The object store rejected or failed an operation."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "storage_error"


class AuthenticationFailed(DeliveryError):
    """Credentials were wrong or the account may not sign in."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
