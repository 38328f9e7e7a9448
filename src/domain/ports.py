"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, plus the plain records that cross them.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


@dataclass(frozen=True)
class User:
    """Durable account record. Created only by approval, never updated."""

    id: int
    email: str
    login: str
    password_hash: str
    created_at: datetime


@dataclass(frozen=True)
class PendingRegistration:
    """
    Unconfirmed signup awaiting email verification, keyed by token.

    At most one unexpired pending registration per email is allowed.
    This is enforced by a time-windowed existence check in the
    registration workflow, not by a uniqueness constraint.
    """

    token: str
    email: str
    login: str
    password_hash: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class SessionIdentity:
    """Identity resolved from a valid session token."""

    user_id: int
    login: str


@dataclass(frozen=True)
class EmailCheckResult:
    """Verdict of the email-quality check."""

    valid: bool
    reason: str | None = None


class ApproveResult(Enum):
    """
    Result of redeeming a registration token.

    Used by approve_registration() to indicate success or specific failure.
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of approve_registration(); user fields set only on SUCCESS."""

    result: ApproveResult
    user_id: int | None = None
    login: str | None = None


class AccountRepository(Protocol):
    """Port interface for users, pending registrations and sessions."""

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...

    async def get_user_by_email(self, email: str) -> User | None: ...

    async def get_user_by_login(self, login: str) -> User | None: ...

    async def has_pending_registration(self, email: str, created_after: datetime) -> bool:
        """
        Check for a pending registration created after the given instant.

        Args:
            email: Normalized email address
            created_after: Start of the dedup window (now - TTL)

        Returns:
            True if such a registration exists
        """
        ...

    async def create_pending_registration(self, registration: PendingRegistration) -> None:
        """
        Persist a pending registration.

        The token is the primary key; a collision raises StorageError.
        """
        ...

    async def approve_registration(
        self, token: str, session_token: str, now: datetime
    ) -> ApprovalOutcome:
        """
        Redeem a registration token into a user and a session.

        Must run as a single transaction with the pending row locked:
        1. Pending registration exists (else NOT_FOUND)
        2. expires_at >= now (else EXPIRED, nothing changes)
        3. Insert user, delete pending row, insert session

        Any failure inside step 3 rolls back the whole unit and propagates.
        Concurrent calls for the same token yield exactly one SUCCESS;
        the others see the row gone and get NOT_FOUND.

        Args:
            token: Registration token from the confirmation link
            session_token: Freshly generated session token for the new user
            now: Current time, used for the expiry check and timestamps

        Returns:
            ApprovalOutcome with the new user's id and login on SUCCESS
        """
        ...

    async def create_session(self, token: str, user_id: int, now: datetime) -> None: ...

    async def get_session_identity(self, token: str) -> SessionIdentity | None:
        """Look up a session joined with its user."""
        ...

    async def touch_session(self, token: str, now: datetime) -> None:
        """Set last_used_at; token and created_at stay unchanged."""
        ...

    async def delete_session(self, token: str) -> None:
        """Delete a session. Deleting an unknown token is not an error."""
        ...


class EmailQualityChecker(Protocol):
    """Port interface for the remote email deliverability/risk service."""

    async def check(self, email: str) -> EmailCheckResult:
        """
        Assess an email address.

        Raises:
            EmailValidationFailed: service unreachable or response unusable.
                A failed check is never reported as valid.
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    async def send_confirmation(self, email: str, token: str) -> bool:
        """
        Send the confirmation link for a registration token.

        Args:
            email: Recipient email address
            token: Registration token embedded in the link

        Returns:
            True if the relay accepted the message
        """
        ...
