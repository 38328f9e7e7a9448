"""
Session manager - opaque bearer session lifecycle.

Sessions have no server-side expiry: a token stays valid until it is
deleted on logout (or its user is deleted, which cascades).
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .clock import Clock, utc_now
from .exceptions import InvalidCredentials
from .ports import AccountRepository, SessionIdentity
from .security import PasswordHasher, generate_session_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    login: str


@dataclass
class SessionManager:
    """Issues, verifies, touches and revokes session tokens."""

    repository: AccountRepository
    hasher: PasswordHasher = field(default_factory=PasswordHasher)
    clock: Clock = utc_now

    async def issue(self, user_id: int) -> str:
        """Create and persist a new session for a user."""
        token = generate_session_token()
        await self.repository.create_session(token, user_id, self.clock())
        return token

    async def verify(self, token: str | None) -> SessionIdentity | None:
        """
        Resolve a session token to an identity.

        A hit touches last_used_at (exactly one write); a miss returns None.
        """
        if not token:
            return None

        identity = await self.repository.get_session_identity(token)
        if identity is None:
            return None

        await self.repository.touch_session(token, self.clock())
        return identity

    async def revoke(self, token: str) -> None:
        """Delete a session. Unknown tokens are ignored."""
        await self.repository.delete_session(token)

    async def login(self, login: str, password: str) -> LoginResult:
        """
        Authenticate by login and password and open a session.

        Raises:
            InvalidCredentials: unknown login or wrong password, identical
                in both cases to prevent user enumeration
        """
        user = await self.repository.get_user_by_login(login)

        if user is None:
            await asyncio.to_thread(self.hasher.verify_dummy, password)
            raise InvalidCredentials()

        if not await asyncio.to_thread(self.hasher.verify, password, user.password_hash):
            raise InvalidCredentials()

        token = await self.issue(user.id)
        logger.info(f"User {user.id} logged in")
        return LoginResult(token=token, login=user.login)
