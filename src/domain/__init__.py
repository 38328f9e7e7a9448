"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration, approval and session workflows.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .approval import ApprovalResult, ApprovalService
from .exceptions import (
    ApprovalError,
    ApprovalFailed,
    AuthError,
    EmailExists,
    EmailSendFailed,
    EmailValidationFailed,
    InvalidCredentials,
    InvalidEmail,
    InvalidLogin,
    InvalidPassword,
    InvalidToken,
    LoginExists,
    MissingFields,
    MissingToken,
    RegistrationError,
    StorageError,
    TokenExists,
    TokenExpired,
)
from .ports import (
    AccountRepository,
    ApprovalOutcome,
    ApproveResult,
    EmailCheckResult,
    EmailQualityChecker,
    EmailSender,
    PendingRegistration,
    SessionIdentity,
    User,
)
from .registration import RegistrationService
from .security import PasswordHasher
from .sessions import LoginResult, SessionManager

__all__ = [
    "AccountRepository",
    "ApprovalError",
    "ApprovalFailed",
    "ApprovalOutcome",
    "ApprovalResult",
    "ApprovalService",
    "ApproveResult",
    "AuthError",
    "EmailCheckResult",
    "EmailExists",
    "EmailQualityChecker",
    "EmailSendFailed",
    "EmailSender",
    "EmailValidationFailed",
    "InvalidCredentials",
    "InvalidEmail",
    "InvalidLogin",
    "InvalidPassword",
    "InvalidToken",
    "LoginExists",
    "LoginResult",
    "MissingFields",
    "MissingToken",
    "PasswordHasher",
    "PendingRegistration",
    "RegistrationError",
    "RegistrationService",
    "SessionIdentity",
    "SessionManager",
    "StorageError",
    "TokenExists",
    "TokenExpired",
    "User",
]
