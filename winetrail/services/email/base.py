"""Base email service and factory."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader

if TYPE_CHECKING:
    from winetrail.config import Settings
    from winetrail.models.booking import Booking

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class EmailService(ABC):
    """Abstract base class for email services."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings
        self.sender = settings.email_sender
        self.sender_name = settings.email_sender_name
        self.frontend_url = settings.frontend_url.rstrip("/")

        self.template_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
        )

    def _render_template(self, template_name: str, **context: object) -> str:
        template = self.template_env.get_template(template_name)
        return template.render(app_name=self.settings.app_name, **context)

    def _format_sender(self) -> str:
        """Format the sender, e.g. "WineTrail <bookings@winetrail.app>"."""
        return f"{self.sender_name} <{self.sender}>"

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """Send an email.

        Args:
            to_email: Recipient email address.
            subject: Email subject.
            html_content: HTML email body.
            text_content: Plain text email body (optional).

        Returns:
            True if email was sent successfully, False otherwise.
        """

    async def send_verification_email(self, to_email: str, token: str) -> bool:
        verify_url = f"{self.frontend_url}/verify?token={token}"
        app_name = self.settings.app_name

        text_content = (
            f"Welcome to {app_name}!\n\n"
            f"Please verify your email address by opening the link below:\n\n"
            f"{verify_url}\n\n"
            "If you did not create an account, please ignore this email."
        )

        return await self.send_email(
            to_email=to_email,
            subject=f"Verify your {app_name} account",
            html_content=self._render_template("verification.html", verify_url=verify_url),
            text_content=text_content,
        )

    async def send_password_reset_email(self, to_email: str, token: str) -> bool:
        reset_url = f"{self.frontend_url}/reset-password?token={token}"
        app_name = self.settings.app_name

        text_content = (
            f"{app_name} Password Reset\n\n"
            "You requested a password reset for your account.\n\n"
            f"Open the link below to reset your password:\n\n{reset_url}\n\n"
            "If you did not request a password reset, please ignore this email.\n"
            "This link will expire in 1 hour."
        )

        return await self.send_email(
            to_email=to_email,
            subject=f"Reset your {app_name} password",
            html_content=self._render_template("password_reset.html", reset_url=reset_url),
            text_content=text_content,
        )

    async def send_booking_confirmation_email(self, to_email: str, booking: "Booking") -> bool:
        """Send the itinerary summary for a confirmed booking.

        Args:
            to_email: Recipient email address.
            booking: The confirmed booking.

        Returns:
            True if email was sent successfully, False otherwise.
        """
        bookings_url = f"{self.frontend_url}/bookings"
        lines = []
        for visit in booking.wineries:
            when = visit.date_time or "time to be arranged"
            lines.append(f"- {visit.winery_name} ({when}), party of {visit.number_of_people}")

        text_content = (
            "Your wine tasting itinerary is confirmed.\n\n"
            + "\n".join(lines)
            + f"\n\nTotal: {booking.total_amount:.2f} {booking.currency.upper()}\n"
            f"View your bookings at {bookings_url}"
        )

        return await self.send_email(
            to_email=to_email,
            subject=f"Your {self.settings.app_name} booking is confirmed",
            html_content=self._render_template(
                "booking_confirmation.html",
                booking=booking,
                bookings_url=bookings_url,
            ),
            text_content=text_content,
        )


def get_email_service() -> EmailService:
    """Get the email service selected by ``email.backend``."""
    from winetrail.config import settings

    if settings.email_backend == "ses":
        from winetrail.services.email.ses import SESEmailService

        return SESEmailService(settings)

    from winetrail.services.email.console import ConsoleEmailService

    return ConsoleEmailService(settings)
