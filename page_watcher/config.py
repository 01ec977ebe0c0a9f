"""
Configuration loading for the Page Watcher.

All runtime settings are resolved here from environment variables. A `.env`
file in the working directory is loaded first when present; variables that
are already set in the environment take precedence over it.
"""

import os
import re
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from page_watcher.utils import get_env_flag, get_env_var, get_logger


# Module logger
logger = get_logger("config")

DEFAULT_CHECK_INTERVAL = "5m"
DEFAULT_SMTP_PORT = 587
DEFAULT_REQUEST_TIMEOUT = 30  # seconds

# Seconds per duration unit
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Longest duration representable as signed 64-bit nanoseconds (about 292 years)
MAX_DURATION_SECONDS = (2 ** 63 - 1) / 1e9

_DURATION_SEGMENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed."""


@dataclass(frozen=True)
class Config:
    """
    Resolved settings for one watcher process.

    Attributes:
        website_url: Page to fetch on every cycle.
        search_text: Phrase to look for (matched case-insensitively).
        check_interval: Seconds between the start of two cycles.
        discord_webhook: Discord webhook URL, if that transport is used.
        smtp_host: SMTP server host, if the email transport is used.
        smtp_port: SMTP server port.
        smtp_user: SMTP username (optional).
        smtp_password: SMTP password (optional).
        smtp_starttls: Whether to upgrade non-465 connections with STARTTLS.
        email_from: Sender address for email notifications.
        email_to: Recipient addresses for email notifications.
        request_timeout: HTTP timeout in seconds for page fetches.
        dry_run: Log notifications instead of delivering them.
        run_once: Run a single cycle and exit.
    """
    website_url: str
    search_text: str
    check_interval: float = 300.0
    discord_webhook: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_starttls: bool = True
    email_from: Optional[str] = None
    email_to: tuple = ()
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    dry_run: bool = False
    run_once: bool = False

    @property
    def discord_configured(self) -> bool:
        return bool(self.discord_webhook)

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_host)


def parse_duration(text: str) -> float:
    """
    Parse a duration string such as "5m", "30s", "1h30m" or "1.5h".

    Args:
        text: Duration made of one or more <number><unit> segments.
              Supported units: ns, us (µs), ms, s, m, h. A bare "0" is allowed.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    if text is None:
        raise ValueError("duration is empty")

    raw = text.strip()
    if not raw:
        raise ValueError("duration is empty")

    sign = 1.0
    body = raw
    if body[0] in "+-":
        if body[0] == "-":
            sign = -1.0
        body = body[1:]

    if body == "0":
        return 0.0

    total = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_SEGMENT.match(body, position)
        if match is None:
            raise ValueError(f"invalid duration {raw!r}")
        value, unit = match.groups()
        total += float(value) * _DURATION_UNITS[unit]
        position = match.end()

    if position == 0:
        raise ValueError(f"invalid duration {raw!r}")

    if total > MAX_DURATION_SECONDS:
        raise ValueError(f"invalid duration {raw!r}: out of range")

    return sign * total


def _split_addresses(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [address.strip() for address in value.split(",") if address.strip()]


def _get_int(name: str, default: int) -> int:
    value = get_env_var(name, required=False)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be a valid integer, got: {value}")


def load_config(env_file: Optional[str] = None) -> Config:
    """
    Build a Config from the environment.

    Args:
        env_file: Optional path to a dotenv file. Defaults to ".env" in the
                  working directory; a missing file is ignored.

    Returns:
        Validated Config instance.

    Raises:
        ConfigError: If a required setting is missing or a value is malformed.
    """
    load_dotenv(env_file or ".env", override=False)

    try:
        website_url = get_env_var("WEBSITE_URL", required=True)
    except ValueError as e:
        raise ConfigError(str(e))

    # Surrounding spaces are part of the phrase
    search_text = os.environ.get("SEARCH_TEXT", "")
    if not search_text.strip():
        raise ConfigError("Required environment variable 'SEARCH_TEXT' is not set")

    interval_str = get_env_var("CHECK_INTERVAL", required=False, default=DEFAULT_CHECK_INTERVAL)
    try:
        check_interval = parse_duration(interval_str)
    except ValueError as e:
        raise ConfigError(
            f"Invalid CHECK_INTERVAL format: {e}. Use format like '5m', '1h', etc."
        )
    if check_interval <= 0:
        raise ConfigError(f"CHECK_INTERVAL must be positive, got: {interval_str}")

    discord_webhook = get_env_var("DISCORD_WEBHOOK", required=False)
    smtp_host = get_env_var("SMTP_HOST", required=False)

    if not discord_webhook and not smtp_host:
        raise ConfigError(
            "No notification transport configured: set DISCORD_WEBHOOK or SMTP_HOST"
        )

    email_from = get_env_var("EMAIL_FROM", required=False)
    email_to = _split_addresses(get_env_var("EMAIL_TO", required=False))

    if smtp_host:
        missing = []
        if not email_from:
            missing.append("EMAIL_FROM")
        if not email_to:
            missing.append("EMAIL_TO")
        if missing:
            raise ConfigError(
                f"SMTP_HOST is set but required email settings are missing: {', '.join(missing)}"
            )

    smtp_port = _get_int("SMTP_PORT", DEFAULT_SMTP_PORT)
    request_timeout = _get_int("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
    if request_timeout <= 0:
        raise ConfigError(f"REQUEST_TIMEOUT must be positive, got: {request_timeout}")

    config = Config(
        website_url=website_url,
        search_text=search_text,
        check_interval=check_interval,
        discord_webhook=discord_webhook,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=get_env_var("SMTP_USER", required=False),
        smtp_password=get_env_var("SMTP_PASSWORD", required=False),
        smtp_starttls=get_env_flag("SMTP_STARTTLS", default=True),
        email_from=email_from,
        email_to=tuple(email_to),
        request_timeout=request_timeout,
        dry_run=get_env_flag("DRY_RUN"),
        run_once=get_env_flag("RUN_ONCE"),
    )

    logger.debug(f"Loaded configuration for {config.website_url}")
    return config
