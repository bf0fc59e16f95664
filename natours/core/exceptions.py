"""Application error types.

Every error raised on purpose by the API derives from :class:`AppError` and
carries the HTTP status it maps to. Anything else reaching the error handlers
is treated as a programming error.
"""


class AppError(Exception):
    """Base class for operational, user-facing errors."""

    status_code = 500
    is_operational = True

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize the error.

        Args:
            message: Stable, client-safe description of the failure.
            status_code: Overrides the class default HTTP status.
        """
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(AppError):
    """Raised when input violates a field constraint."""

    status_code = 400


class AuthenticationError(AppError):
    """Raised for missing, invalid or expired credentials."""

    status_code = 401


class TokenInvalidError(AuthenticationError):
    def __init__(self, message: str = "Invalid token. Please log in again!"):
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    def __init__(self, message: str = "Your token has expired! Please log in again."):
        super().__init__(message)


class AuthorizationError(AppError):
    """Raised when the authenticated user's role is not permitted."""

    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class ResetTokenError(AppError):
    """Raised when a password reset token is unknown, expired or used."""

    status_code = 400

    def __init__(self, message: str = "Token is invalid or has expired"):
        super().__init__(message)


class DeliveryError(AppError):
    """Raised when an outbound email cannot be delivered."""

    status_code = 500
