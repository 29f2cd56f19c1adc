class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ArgumentError(ServiceError):
    """Raised when caller input is malformed, missing or out of range."""


class NotFoundError(ServiceError):
    """Raised when a referenced review does not exist."""


class AuthorizationError(ServiceError):
    """Raised when the caller may not act on the referenced review."""


class InfrastructureError(ServiceError):
    """Raised when the backing store fails."""


class DownstreamServiceError(InfrastructureError):
    """Raised when the remote store gateway returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code
