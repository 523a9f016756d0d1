"""Domain exceptions converted into the standard error envelope at the app boundary."""

from typing import Any, List, Optional


class ApiError(Exception):
    """Base class for every failure a handler reports to the caller."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def __repr__(self):
        return f"<{type(self).__name__}(status_code={self.status_code}, message={self.message!r})>"


class ValidationError(ApiError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    """Missing, invalid or expired credential."""
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    """Authenticated, but not entitled to touch the resource."""
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class UploadError(ApiError):
    """Transport failure talking to the media host."""
    status_code = 500
    default_message = "Error while uploading file"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
