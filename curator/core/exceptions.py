"""Custom exception hierarchy.

Each exception carries the HTTP status the API layer answers with, so
services raise domain errors and a single handler in ``curator.main``
renders them.
"""


class AppError(Exception):
    """Base exception for application errors."""

    status_code = 500

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class AuthenticationError(AppError):
    """Raised when the caller has no valid session."""

    status_code = 401


class AuthorizationError(AppError):
    """Raised when the caller's role is insufficient."""

    status_code = 403


class SelfModificationError(AuthorizationError):
    """Raised when an admin tries to change their own role or deactivate themselves."""

    pass


class ValidationError(AppError):
    """Raised when input validation fails."""

    status_code = 400


class InvalidTransitionError(ValidationError):
    """Raised when a document or chunk cannot move to the requested status."""

    pass


class NotFoundError(AppError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""

    pass


class ChunkNotFoundError(NotFoundError):
    """Raised when a document chunk is not found."""

    pass


class StoreError(AppError):
    """Raised when a database operation fails."""

    pass


class ExternalServiceError(AppError):
    """Raised when storage, the auth provider, an embedding provider or a processor fails."""

    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""

    pass
