"""
Booking notifiers.

``SmtpNotifier`` mails a short notice to a configured address after each
booking; ``LoggingNotifier`` only writes the notice to the log and is used
when no SMTP credentials are configured.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from ..config import NotifierConfig
from ..domain.exceptions import NotifierFailure
from ..domain.models import Booking

logger = logging.getLogger(__name__)


def build_notice_text(booking: Booking) -> str:
    return (
        f"{booking.name} ({booking.email}, {booking.year.value}, {booking.branch}) "
        f"just booked the interview slot at {booking.preferred_time.to_iso8601_string()}.\n"
        f"Resume: {booking.resume_url}"
    )


class SmtpNotifier:
    """
    Sends booking notices over SMTP.

    Delivery failures are logged and swallowed; the booking that triggered
    the notice is already stored.
    """

    def __init__(self, config: NotifierConfig):
        self.config = config

    async def notify(self, subject: str, booking: Booking) -> None:
        try:
            await asyncio.to_thread(self._send, subject, booking)
        except NotifierFailure as exc:
            logger.error("Failed to send notification email: %s", exc)
            return
        logger.info("Notification email sent for booking %s", booking.id)

    def _build_message(self, subject: str, booking: Booking) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.config.sender_name, self.config.username))
        message["To"] = self.config.recipient
        message["Subject"] = subject
        message.set_content(build_notice_text(booking))
        return message

    def _send(self, subject: str, booking: Booking) -> None:
        message = self._build_message(subject, booking)
        try:
            with smtplib.SMTP(
                self.config.smtp_host,
                self.config.smtp_port,
                timeout=self.config.timeout_seconds,
            ) as server:
                if self.config.use_tls:
                    server.starttls()
                server.login(self.config.username, self.config.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotifierFailure(
                f"SMTP delivery via {self.config.smtp_host}:{self.config.smtp_port} failed: {exc}"
            ) from exc


class LoggingNotifier:
    """Writes booking notices to the log instead of sending them."""

    async def notify(self, subject: str, booking: Booking) -> None:
        logger.info("[%s] %s", subject, build_notice_text(booking))


def build_notifier(config: NotifierConfig):
    """Pick the SMTP notifier when it is fully configured, else the logging one."""
    if config.is_enabled():
        return SmtpNotifier(config)
    logger.debug("SMTP notifier not configured; booking notices go to the log")
    return LoggingNotifier()
