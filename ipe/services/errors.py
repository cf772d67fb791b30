"""Domain error taxonomy shared by services and the HTTP layer.

Every error carries a machine-readable code and the HTTP status the API
renders it with. Services raise these before any persistence happens, so a
failed request never leaves a partial write behind.
"""

from typing import Any, Dict

from fastapi import status


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class DataValidationError(AppError):
    """Input failed validation (missing evidence, bad amount, bad status...)."""

    def __init__(self, message: str = "Invalid data", code: str = "validation_error"):
        super().__init__(message, code, status.HTTP_400_BAD_REQUEST)


class InvalidTransitionError(DataValidationError):
    """Requested status change is not an edge of the payment lifecycle."""

    def __init__(self, message: str = "Invalid status transition"):
        super().__init__(message, "invalid_transition")


class PermissionDeniedError(AppError):
    """Caller role is not allowed to perform the action."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied", status.HTTP_403_FORBIDDEN)


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "not_authenticated", status.HTTP_401_UNAUTHORIZED)


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found", status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    """Record changed since the caller last read it."""

    def __init__(self, message: str = "Record was modified by another request"):
        super().__init__(message, "conflict", status.HTTP_409_CONFLICT)


class StorageError(AppError):
    """Underlying persistence or file storage failure."""

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message, "storage_error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response body."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "AppError",
    "AuthenticationError",
    "ConflictError",
    "DataValidationError",
    "InvalidTransitionError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "error_response",
]
