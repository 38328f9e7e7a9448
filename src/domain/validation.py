"""
Input validation - format-level checks for email, login and password.

All validators are pure functions with no I/O. Login and password
checks return a ValidationResult whose message is safe to show to
the user.
"""

import re
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 255

LOGIN_MIN_LENGTH = 3
LOGIN_MAX_LENGTH = 32
_LOGIN_PATTERN = re.compile(r"[A-Za-z0-9_]+")

PASSWORD_MIN_LENGTH = 8
PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*(),.?\":{}|<>_+-=[]\\;'`~"

# Requirement labels, in the order they appear in messages
REQUIREMENT_LENGTH = f"at least {PASSWORD_MIN_LENGTH} characters"
REQUIREMENT_UPPERCASE = "an uppercase letter"
REQUIREMENT_DIGIT = "a number"
REQUIREMENT_SPECIAL = "a special character"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str | None = None
    missing: tuple[str, ...] = ()


def validate_email_format(email: str) -> bool:
    """
    Check email length and RFC-like shape.

    Syntax only: no DNS or deliverability lookup, that is the job of
    the external email-quality check.
    """
    if not isinstance(email, str):
        return False
    if not EMAIL_MIN_LENGTH <= len(email) <= EMAIL_MAX_LENGTH:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_login(login: str) -> ValidationResult:
    """Login: 3-32 characters from [A-Za-z0-9_]."""
    if not isinstance(login, str) or not login:
        return ValidationResult(
            valid=False,
            message=(
                "Login must contain only latin letters, numbers and '_', "
                f"length from {LOGIN_MIN_LENGTH} to {LOGIN_MAX_LENGTH} characters"
            ),
        )

    if not LOGIN_MIN_LENGTH <= len(login) <= LOGIN_MAX_LENGTH:
        return ValidationResult(
            valid=False,
            message=(
                f"Login must be between {LOGIN_MIN_LENGTH} and "
                f"{LOGIN_MAX_LENGTH} characters"
            ),
        )

    if not _LOGIN_PATTERN.fullmatch(login):
        return ValidationResult(
            valid=False,
            message="Login must contain only latin letters, numbers and '_'",
        )

    return ValidationResult(valid=True)


def validate_password(password: str) -> ValidationResult:
    """
    Password strength policy.

    Requires at least 8 characters, one uppercase letter, one digit and
    one special character. Every unmet requirement is reported, not just
    the first one.
    """
    if not isinstance(password, str):
        password = ""

    missing = []
    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(REQUIREMENT_LENGTH)
    if not any(c.isascii() and c.isupper() for c in password):
        missing.append(REQUIREMENT_UPPERCASE)
    if not any(c.isascii() and c.isdigit() for c in password):
        missing.append(REQUIREMENT_DIGIT)
    if not any(c in PASSWORD_SPECIAL_CHARACTERS for c in password):
        missing.append(REQUIREMENT_SPECIAL)

    if missing:
        return ValidationResult(
            valid=False,
            message="Password must contain: " + ", ".join(missing),
            missing=tuple(missing),
        )

    return ValidationResult(valid=True)
