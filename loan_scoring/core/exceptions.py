from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base class for errors raised by the loan services.

    Each subclass carries the HTTP status it maps to so the exception
    handlers in ``main`` can render a ``{message, field}`` body.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: Optional[str] = None

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_response(self) -> dict:
        body = {"message": self.public_message or self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(ServiceError):
    # The HTTP contract reports a non-owner as 401.
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class OracleResponseError(ServiceError):
    public_message = "AI assessment failed, please try again"


class PersistenceError(ServiceError):
    public_message = "Internal server error"


class ScoreConflictError(PersistenceError):
    """A score already exists for the application."""


class ObjectStorageError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = "Object storage is unavailable, please try again"


class ScoringUnavailableError(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    public_message = "AI assessment is not available. Please contact system administrator."
