"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging confirmation links to stdout for development.
"""

import logging

from .relay import build_confirmation_url

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For development - prints confirmation links instead of mailing them.
    """

    def __init__(self, base_url: str = "http://localhost:5173") -> None:
        self._base_url = base_url

    async def send_confirmation(self, email: str, token: str) -> bool:
        """
        Log the confirmation link (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            token: Registration token

        Returns:
            Always True
        """
        url = build_confirmation_url(self._base_url, token)
        logger.info("[CONFIRMATION] Email: %s Link: %s", email, url)
        return True
