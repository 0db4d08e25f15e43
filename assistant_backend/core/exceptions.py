from dataclasses import asdict, dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class AppError(Exception):
    """Base error rendered as ``{"error": message}`` by the API layer."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


# ------ Validation -----
class ValidationFailed(AppError):
    """Input the caller can correct; carries field-tagged messages."""

    default_message = "Validation failed"

    def __init__(self, errors: List[FieldError], message: Optional[str] = None):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {"errors": [asdict(e) for e in self.errors]}


class InvalidCredentials(ValidationFailed):
    default_message = "Invalid email or password"

    def __init__(self):
        super().__init__([
            FieldError("email", self.default_message),
            FieldError("password", self.default_message),
        ])


# ------ Account state -----
class EmailInUse(AppError):
    default_message = "Email is already in use"


class RateLimited(AppError):
    default_message = "A code was sent recently. Please wait before requesting another one"


class UnknownEmail(AppError):
    default_message = "No account found for this email"


class ChallengeExpired(AppError):
    default_message = "Verification code has expired"


class InvalidChallenge(AppError):
    default_message = "Invalid verification code"


class AlreadyVerified(AppError):
    default_message = "User is already verified"


class NotVerified(AppError):
    default_message = "Please verify your email before logging in"


class PasswordMismatch(AppError):
    default_message = "Passwords do not match"


class WeakPassword(AppError):
    default_message = "Password must be at least 8 characters long"


class PasswordUnchanged(AppError):
    default_message = "New password must be different from the current password"


class UserNotFound(AppError):
    status_code = 404
    default_message = "User not found"


# ------ Tokens -----
class InvalidOrExpiredToken(AppError):
    default_message = "Invalid or expired token"


class TokenExpired(InvalidOrExpiredToken):
    default_message = "Token expired"


class TokenInvalid(InvalidOrExpiredToken):
    default_message = "Invalid token"


class AuthorizationError(AppError):
    status_code = 401
    default_message = "Invalid token"


# ------ Chat -----
class UnknownServiceItem(AppError):
    default_message = "Invalid service or service item"


class SessionNotFound(AppError):
    default_message = "Session not found"


class ConcurrentTurn(AppError):
    status_code = 409
    default_message = "Another message was added to this session at the same time. Please retry."


# ------ Infrastructure -----
class TooManyRequests(AppError):
    status_code = 429
    default_message = "Rate limit exceeded"


class UpstreamError(AppError):
    default_message = "AI service is unavailable. Please try again later."


class NotificationError(Exception):
    """Raised by notification senders; never surfaced to API callers."""
