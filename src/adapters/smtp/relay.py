"""
SMTP email sender adapter - Implements EmailSender protocol.

Sends the HTML confirmation email through an outbound SMTP relay using
aiosmtplib. Implicit TLS is used on port 465, STARTTLS on anything else.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

import aiosmtplib

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Confirm registration on Quiz"


def build_confirmation_url(base_url: str, token: str) -> str:
    """Confirmation link handled by the front-end registration page."""
    return f"{base_url.rstrip('/')}/register?{urlencode({'Token': token})}"


def render_confirmation_html(confirmation_url: str, ttl_hours: int = 24) -> str:
    return f"""
<h1>Welcome to Quiz!</h1>
<p>Please confirm your registration by clicking the link below:</p>
<a href="{confirmation_url}">Confirm Registration</a>
<p>If you didn't request this registration, please ignore this email.</p>
<p>The link will expire in {ttl_hours} hours.</p>
"""


class SmtpEmailSender:
    """
    Implements EmailSender protocol via an SMTP relay.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Delivery failures are logged and reported as False, never raised.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        base_url: str,
        from_name: str = "Quiz App",
        ttl_hours: int = 24,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._base_url = base_url
        self._from_name = from_name
        self._ttl_hours = ttl_hours

    def _build_message(self, email: str, token: str) -> MIMEMultipart:
        confirmation_url = build_confirmation_url(self._base_url, token)

        message = MIMEMultipart("alternative")
        message["Subject"] = CONFIRMATION_SUBJECT
        message["From"] = f"{self._from_name} <{self._username}>"
        message["To"] = email
        message.attach(
            MIMEText(f"Confirm your registration: {confirmation_url}", "plain")
        )
        message.attach(
            MIMEText(render_confirmation_html(confirmation_url, self._ttl_hours), "html")
        )
        return message

    async def send_confirmation(self, email: str, token: str) -> bool:
        """
        Send the confirmation link to the user.

        Args:
            email: Recipient email address (normalized by domain layer)
            token: Registration token

        Returns:
            True if the relay accepted the message, False otherwise
        """
        message = self._build_message(email, token)
        use_tls = self._port == 465

        try:
            await aiosmtplib.send(
                message,
                hostname=self._host,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                use_tls=use_tls,
                start_tls=not use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send confirmation email to {email}: {e}")
            return False

        logger.info(f"Confirmation email sent via SMTP to {email}")
        return True
