"""
Notify module for the Page Watcher.

This module delivers a message when the search text is found on the
watched page. Two channels are supported:
- Discord webhook (JSON POST)
- Email via SMTP, with implicit TLS on port 465 or STARTTLS elsewhere

Both share the Notifier interface and the same message text. Delivery
failures raise NotificationError; the caller decides whether that is fatal.
"""

import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from email.utils import format_datetime
from typing import List, Optional, Sequence

import requests

from page_watcher.config import Config
from page_watcher.utils import get_logger


# Module logger
logger = get_logger("notify")

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Discord rejects message content longer than this
DISCORD_MAX_CONTENT_LENGTH = 2000

DEFAULT_SMTP_TIMEOUT = 30  # seconds
DEFAULT_WEBHOOK_TIMEOUT = 30  # seconds


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.original_error = original_error


def format_links(links: Sequence[str]) -> str:
    """Format links as a numbered list, one per line."""
    return "\n".join(f"{i}. {link}" for i, link in enumerate(links, 1))


def format_message(
    source_url: str,
    search_text: str,
    links: Sequence[str],
    timestamp: datetime,
    markdown: bool = True
) -> str:
    """
    Build the notification text shared by every channel.

    Args:
        source_url: The watched page.
        search_text: The phrase that was found.
        links: Links associated with the match, most relevant first.
        timestamp: Time of the check.
        markdown: Use Discord-style bold markers for headings.

    Returns:
        Message text.
    """
    bold = "**" if markdown else ""

    lines = [
        f"🔔 {bold}Match Found!{bold}",
        "",
        f"Website: {source_url}",
        f"Search text: {search_text}",
        f"Time: {timestamp.strftime(TIME_FORMAT)}",
    ]

    if links:
        lines.extend([
            "",
            f"{bold}Links:{bold}",
            format_links(links),
        ])

    return "\n".join(lines)


def truncate_content(content: str, limit: int = DISCORD_MAX_CONTENT_LENGTH) -> str:
    """Cut content to at most limit characters, marking the cut with an ellipsis."""
    if len(content) <= limit:
        return content
    return content[:limit - 1] + "…"


class Notifier:
    """Base class for notification channels."""

    name = "notifier"

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def notify(
        self,
        source_url: str,
        search_text: str,
        links: Sequence[str],
        timestamp: datetime
    ) -> None:
        """
        Deliver a match notification.

        Raises:
            NotificationError: If delivery fails.
        """
        raise NotImplementedError


class DiscordNotifier(Notifier):
    """Posts match notifications to a Discord webhook."""

    name = "discord"

    def __init__(
        self,
        webhook_url: str,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_WEBHOOK_TIMEOUT,
        dry_run: bool = False
    ):
        super().__init__(dry_run=dry_run)
        self.webhook_url = webhook_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_payload(
        self,
        source_url: str,
        search_text: str,
        links: Sequence[str],
        timestamp: datetime
    ) -> dict:
        content = format_message(source_url, search_text, links, timestamp)
        return {"content": truncate_content(content)}

    def notify(self, source_url, search_text, links, timestamp) -> None:
        payload = self.build_payload(source_url, search_text, links, timestamp)

        if self.dry_run:
            logger.info("[DRY RUN] Would send Discord notification")
            logger.debug(f"[DRY RUN] Content:\n{payload['content']}")
            return

        try:
            response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NotificationError(
                f"Error sending Discord notification: {e}",
                original_error=e
            )

        if 200 <= response.status_code < 300:
            logger.info("Discord notification sent successfully!")
            return

        raise NotificationError(
            f"Discord webhook returned status code {response.status_code}",
            status_code=response.status_code
        )


class EmailNotifier(Notifier):
    """Sends match notifications as plain-text email over SMTP."""

    name = "email"

    def __init__(
        self,
        smtp_host: str,
        email_from: str,
        email_to: Sequence[str],
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        starttls: bool = True,
        timeout: int = DEFAULT_SMTP_TIMEOUT,
        dry_run: bool = False
    ):
        super().__init__(dry_run=dry_run)
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.starttls = starttls
        self.email_from = email_from
        self.email_to = list(email_to)
        self.timeout = timeout

    @property
    def authenticate(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def build_message(
        self,
        source_url: str,
        search_text: str,
        links: Sequence[str],
        timestamp: datetime
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"Match found: {search_text}"
        msg["From"] = self.email_from
        msg["To"] = ", ".join(self.email_to)
        msg["Date"] = format_datetime(timestamp.astimezone())
        msg.set_content(format_message(source_url, search_text, links, timestamp, markdown=False))
        return msg

    def _send(self, msg: EmailMessage) -> None:
        ssl_context = ssl.create_default_context()

        logger.info(f"Connecting to SMTP server: {self.smtp_host}:{self.smtp_port}")

        if self.smtp_port == 465:
            logger.debug("Using SMTP_SSL (implicit TLS) for port 465")
            with smtplib.SMTP_SSL(
                self.smtp_host, self.smtp_port, timeout=self.timeout, context=ssl_context
            ) as server:
                if self.authenticate:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        else:
            logger.debug(f"Using SMTP for port {self.smtp_port}")
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls(context=ssl_context)
                if self.authenticate:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

    def notify(self, source_url, search_text, links, timestamp) -> None:
        msg = self.build_message(source_url, search_text, links, timestamp)

        if self.dry_run:
            logger.info(f"[DRY RUN] Would send email to: {msg['To']}")
            logger.info(f"[DRY RUN] Subject: {msg['Subject']}")
            return

        try:
            self._send(msg)
        except smtplib.SMTPAuthenticationError as e:
            raise NotificationError(f"SMTP authentication failed: {e}", original_error=e)
        except smtplib.SMTPConnectError as e:
            raise NotificationError(f"Failed to connect to SMTP server: {e}", original_error=e)
        except smtplib.SMTPException as e:
            raise NotificationError(f"SMTP error while sending email: {e}", original_error=e)
        except ssl.SSLError as e:
            raise NotificationError(f"SSL/TLS error while sending email: {e}", original_error=e)
        except OSError as e:
            raise NotificationError(f"Error sending email notification: {e}", original_error=e)

        logger.info(f"Email notification sent successfully to {msg['To']}")


def build_notifiers(config: Config, session: Optional[requests.Session] = None) -> List[Notifier]:
    """
    Create the notifiers selected by the configuration.

    Discord is used when a webhook is configured, email when an SMTP host
    is configured. Both may be active at once.

    Args:
        config: Loaded configuration.
        session: Optional requests session shared with the webhook notifier.

    Returns:
        List of notifiers, possibly empty.
    """
    notifiers: List[Notifier] = []

    if config.discord_configured:
        notifiers.append(DiscordNotifier(
            config.discord_webhook,
            session=session,
            dry_run=config.dry_run
        ))

    if config.email_configured:
        notifiers.append(EmailNotifier(
            smtp_host=config.smtp_host,
            email_from=config.email_from,
            email_to=config.email_to,
            smtp_port=config.smtp_port,
            smtp_user=config.smtp_user,
            smtp_password=config.smtp_password,
            starttls=config.smtp_starttls,
            dry_run=config.dry_run
        ))

    logger.debug(f"Configured notifiers: {[n.name for n in notifiers]}")
    return notifiers
