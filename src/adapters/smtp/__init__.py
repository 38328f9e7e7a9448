"""Email sender adapters - SMTP relay and console."""

from .console import ConsoleEmailSender
from .relay import SmtpEmailSender, build_confirmation_url

__all__ = ["ConsoleEmailSender", "SmtpEmailSender", "build_confirmation_url"]
