"""
Approval domain service - redeem a registration token.

Turns a pending registration into a durable user plus a first session.
The heavy lifting (row lock, expiry check, insert/delete/insert) happens
inside a single store transaction; this service maps its outcome to
domain results and errors.
"""

import logging
from dataclasses import dataclass

from .clock import Clock, utc_now
from .exceptions import ApprovalFailed, InvalidToken, MissingToken, TokenExpired
from .ports import AccountRepository, ApproveResult
from .security import generate_session_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalResult:
    session_token: str
    login: str


@dataclass
class ApprovalService:
    """Domain service for registration approval."""

    repository: AccountRepository
    clock: Clock = utc_now

    async def approve(self, token: str | None) -> ApprovalResult:
        """
        Redeem a registration token.

        Args:
            token: Registration token from the confirmation link

        Returns:
            ApprovalResult with the new session token and the user's login

        Raises:
            MissingToken: token absent or empty
            InvalidToken: no pending registration with this token
                (including one already consumed by a concurrent approval)
            TokenExpired: pending registration past its expiry, nothing changed
            ApprovalFailed: the atomic unit failed and was rolled back
        """
        if not token:
            raise MissingToken()

        session_token = generate_session_token()
        try:
            outcome = await self.repository.approve_registration(
                token, session_token, self.clock()
            )
        except Exception as e:
            logger.error(f"Registration approval failed: {e}")
            raise ApprovalFailed() from e

        if outcome.result == ApproveResult.NOT_FOUND:
            raise InvalidToken()
        if outcome.result == ApproveResult.EXPIRED:
            raise TokenExpired()

        logger.info(f"Registration approved for user {outcome.user_id}")
        return ApprovalResult(session_token=session_token, login=outcome.login)
