"""Email service module for WineTrail."""

from winetrail.services.email.base import EmailService, get_email_service
from winetrail.services.email.console import ConsoleEmailService
from winetrail.services.email.ses import SESEmailService

__all__ = [
    "EmailService",
    "ConsoleEmailService",
    "SESEmailService",
    "get_email_service",
]
