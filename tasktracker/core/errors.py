"""Error kinds raised by the service and rendered at the request boundary."""
from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and an error kind."""

    status_code = 500
    kind = "Internal"
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class ValidationFailure(AppError):
    status_code = 400
    kind = "ValidationFailure"
    default_message = "Validation failed"


class DuplicatePrincipal(AppError):
    status_code = 400
    kind = "DuplicatePrincipal"
    default_message = "User with this email or username already exists"


class InvalidRoleTransition(AppError):
    status_code = 400
    kind = "InvalidRoleTransition"
    default_message = "Invalid role transition"


class AlreadySeeded(AppError):
    status_code = 400
    kind = "AlreadySeeded"
    default_message = "Users already exist. Seed can only be used on empty database."


class AuthError(AppError):
    status_code = 401
    kind = "AuthError"
    default_message = "Not authenticated"


class MissingToken(AuthError):
    kind = "AuthMissing"
    default_message = "Please login to access this route"


class MalformedToken(AuthError):
    kind = "AuthMalformed"
    default_message = "Invalid token"


class ExpiredToken(AuthError):
    kind = "AuthExpired"
    default_message = "Token expired. Please login again"


class RevokedToken(AuthError):
    kind = "AuthRevoked"
    default_message = "Token is invalid. Please login again"


class PrincipalNotFound(AuthError):
    kind = "PrincipalNotFound"
    default_message = "User not found"


class InvalidCredentials(AuthError):
    kind = "InvalidCredentials"
    default_message = "Invalid credentials"


class Forbidden(AppError):
    status_code = 403
    kind = "Forbidden"
    default_message = "You do not have permission to perform this action"


class NotFound(AppError):
    status_code = 404
    kind = "NotFound"
    default_message = "Resource not found"


class RateLimited(AppError):
    status_code = 429
    kind = "RateLimited"
    default_message = "Too many requests. Please try again later"
