"""Console email backend for development and testing."""

import logging
from typing import TYPE_CHECKING

from winetrail.services.email.base import EmailService

if TYPE_CHECKING:
    from winetrail.config import Settings

logger = logging.getLogger(__name__)


class ConsoleEmailService(EmailService):
    """Logs outgoing emails instead of sending them."""

    def __init__(self, settings: "Settings") -> None:
        super().__init__(settings)
        logger.debug("Using console email backend (emails will be logged, not sent)")

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        separator = "=" * 60
        logger.info(
            "\n%s\nEMAIL (console backend - not sent)\nFrom: %s\nTo: %s\nSubject: %s\n%s\n%s\n%s",
            separator,
            self._format_sender(),
            to_email,
            subject,
            separator,
            text_content or "(no text content)",
            separator,
        )
        return True
