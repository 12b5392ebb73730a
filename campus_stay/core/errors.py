from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.PERMISSION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.SERVER: 500,
}


class AppError(Exception):
    """Base for every error a service may raise towards the HTTP layer.

    The HTTP status is derived from ``kind`` alone, so messages can be
    reworded freely without changing how a failure is reported.
    """

    kind: ErrorKind = ErrorKind.SERVER
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self):
        return f"<{type(self).__name__} {self.kind.value}: {self.message}>"


class InvalidInputError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication required"


class PermissionDeniedError(AppError):
    kind = ErrorKind.PERMISSION
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class TooManyRequestsError(AppError):
    kind = ErrorKind.RATE_LIMITED
    default_message = "Too many requests. Please try again later."


class ServerError(AppError):
    kind = ErrorKind.SERVER
