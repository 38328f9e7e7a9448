"""
Domain exceptions - Semantic error types for registration and sessions.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Every exception carries a stable machine-readable ``code`` and a
message that is safe to show to the client. The API layer decides
the HTTP status.
"""


class AuthError(Exception):
    """Base class for all auth domain errors."""

    code = "AUTH_ERROR"
    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class RegistrationError(AuthError):
    """Base class for registration workflow errors."""

    code = "REGISTRATION_FAILED"
    default_message = "Registration failed. Please try again later."


class MissingFields(RegistrationError):
    code = "MISSING_FIELDS"
    default_message = "Email, login and password are required"


class InvalidEmail(RegistrationError):
    """Email rejected by format check or by the email-quality service."""

    code = "INVALID_EMAIL"
    default_message = "Invalid email format"


class EmailValidationFailed(RegistrationError):
    """Email-quality service could not be reached or returned garbage."""

    code = "EMAIL_VALIDATION_FAILED"
    default_message = "Unable to validate email address. Please try again later."


class InvalidLogin(RegistrationError):
    code = "INVALID_LOGIN"
    default_message = (
        "Login must contain only latin letters, numbers and '_', "
        "length from 3 to 32 characters"
    )


class InvalidPassword(RegistrationError):
    code = "INVALID_PASSWORD"
    default_message = "Password does not meet the strength requirements"


class EmailExists(RegistrationError):
    code = "EMAIL_EXISTS"
    default_message = "Email already registered"


class LoginExists(RegistrationError):
    code = "LOGIN_EXISTS"
    default_message = "Login already taken"


class TokenExists(RegistrationError):
    """An unexpired pending registration already exists for this email."""

    code = "TOKEN_EXISTS"
    default_message = (
        "Confirmation email was already sent. "
        "Please check your email or try again in 24 hours."
    )


class EmailSendFailed(RegistrationError):
    code = "EMAIL_SEND_FAILED"
    default_message = "Failed to send confirmation email. Please try again later."


class ApprovalError(AuthError):
    """Base class for approval workflow errors."""

    code = "APPROVAL_FAILED"
    default_message = "Registration approval failed"


class MissingToken(ApprovalError):
    code = "MISSING_TOKEN"
    default_message = "Token is required"


class InvalidToken(ApprovalError):
    code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class TokenExpired(ApprovalError):
    code = "TOKEN_EXPIRED"
    default_message = "Token has expired"


class ApprovalFailed(ApprovalError):
    """Atomic user creation failed and was rolled back."""

    pass


class InvalidCredentials(AuthError):
    """Login unknown or password mismatch (deliberately indistinguishable)."""

    code = "INVALID_CREDENTIALS"
    default_message = "Invalid login or password"


class StorageError(AuthError):
    """Persistence layer failure. Details stay in the server log."""

    code = "DATABASE_ERROR"
    default_message = "Database operation failed. Please try again later."
