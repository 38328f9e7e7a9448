"""
Registration domain service - email confirmation workflow.

This module contains the first half of the signup flow: validate the
request, make sure nobody owns the email or login yet, email a one-time
confirmation token and remember the pending registration.

Registration Steps (terminal on first failure)
==============================================

1. email, login and password present        -> MissingFields
2. email format + external quality check    -> InvalidEmail / EmailValidationFailed
3. login format                             -> InvalidLogin
4. password strength                        -> InvalidPassword
5. no user with this email, then this login -> EmailExists / LoginExists
6. no pending registration inside the TTL   -> TokenExists
7. generate token, hash password
8. send confirmation email                  -> EmailSendFailed (nothing persisted)
9. persist pending registration (expires_at = now + TTL)

The confirmation email goes out before the pending row is written, so an
undeliverable registration never reaches the store.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from .clock import Clock, utc_now
from .exceptions import (
    EmailExists,
    EmailSendFailed,
    InvalidEmail,
    InvalidLogin,
    InvalidPassword,
    LoginExists,
    MissingFields,
    TokenExists,
)
from .ports import AccountRepository, EmailQualityChecker, EmailSender, PendingRegistration
from .security import PasswordHasher, generate_registration_token
from .validation import validate_email_format, validate_login, validate_password

logger = logging.getLogger(__name__)


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates validation, dedup lookups, token issuance,
    mail dispatch and pending-registration persistence.
    """

    repository: AccountRepository
    email_checker: EmailQualityChecker
    email_sender: EmailSender
    hasher: PasswordHasher = field(default_factory=PasswordHasher)
    ttl: timedelta = timedelta(hours=24)
    clock: Clock = utc_now

    async def register(self, email: str | None, login: str | None, password: str | None) -> str:
        """
        Start a registration and email the confirmation link.

        Args:
            email: User's email address (will be normalized)
            login: Desired login name
            password: Plaintext password (will be hashed)

        Returns:
            Normalized email address the confirmation was sent to

        Raises:
            RegistrationError subclass describing the first failed step.
            EmailValidationFailed when the quality service is unavailable.
            StorageError when a store lookup or insert fails.
        """
        if not email or not login or not password:
            raise MissingFields()

        normalized_email = self._normalize_email(email)
        await self._check_email(normalized_email)

        login_result = validate_login(login)
        if not login_result.valid:
            raise InvalidLogin(login_result.message)

        password_result = validate_password(password)
        if not password_result.valid:
            raise InvalidPassword(password_result.message)

        if await self.repository.get_user_by_email(normalized_email) is not None:
            raise EmailExists()
        if await self.repository.get_user_by_login(login) is not None:
            raise LoginExists()

        now = self.clock()
        if await self.repository.has_pending_registration(normalized_email, now - self.ttl):
            raise TokenExists()

        token = generate_registration_token()
        password_hash = await asyncio.to_thread(self.hasher.hash, password)

        if not await self.email_sender.send_confirmation(normalized_email, token):
            logger.warning(f"Confirmation email could not be sent to {normalized_email}")
            raise EmailSendFailed()

        await self.repository.create_pending_registration(
            PendingRegistration(
                token=token,
                email=normalized_email,
                login=login,
                password_hash=password_hash,
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        logger.info(f"Registration pending confirmation for {normalized_email}")
        return normalized_email

    async def _check_email(self, email: str) -> None:
        """Local format pre-check, then the external quality service."""
        if not validate_email_format(email):
            raise InvalidEmail()

        result = await self.email_checker.check(email)
        if not result.valid:
            raise InvalidEmail(result.reason)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
