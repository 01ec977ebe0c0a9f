"""
Utility functions for the Page Watcher.

This module provides:
- Central logging configuration
- Environment variable helpers
- URL resolution for hrefs found in fetched pages
- Case-insensitive text matching
"""

import logging
import os
import sys
from typing import Optional
from urllib.parse import SplitResult, urljoin, urlsplit


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure and return the root logger for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO.

    Returns:
        Configured logger instance.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logger = logging.getLogger("page_watcher")
    logger.setLevel(log_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Name for the logger, typically the module name.

    Returns:
        Logger instance configured as a child of the main application logger.
    """
    return logging.getLogger(f"page_watcher.{name}")


def get_env_var(name: str, required: bool = True, default: Optional[str] = None) -> Optional[str]:
    """
    Get an environment variable with optional requirement enforcement.

    Args:
        name: Name of the environment variable.
        required: If True, raises ValueError when variable is not set.
                  Defaults to True.
        default: Default value if variable is not set and not required.

    Returns:
        Value of the environment variable or default.

    Raises:
        ValueError: If required=True and the variable is not set.
    """
    value = os.environ.get(name)

    if value is None or value.strip() == "":
        if required:
            raise ValueError(f"Required environment variable '{name}' is not set")
        return default

    return value.strip()


def get_env_flag(name: str, default: bool = False) -> bool:
    """Read a true/false style environment variable."""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def parse_url(url: str) -> Optional[SplitResult]:
    """
    Split a URL into its components, or return None if it is malformed.

    urlsplit alone is lenient; reading the port also rejects a bad
    port number or an unterminated IPv6 host.
    """
    try:
        parsed = urlsplit(url)
        parsed.port  # raises ValueError for a malformed port
    except ValueError:
        return None
    return parsed


def resolve_url(base_url: str, href: Optional[str]) -> Optional[str]:
    """
    Resolve a possibly relative href against the page it was found on.

    Args:
        base_url: Absolute URL of the page containing the link.
        href: Raw href attribute value (may be relative or absolute).

    Returns:
        Absolute URL string, or None if href is empty or cannot be parsed.
    """
    if href is None:
        return None

    href = href.strip()
    if not href or parse_url(href) is None:
        return None

    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def contains_text(haystack: Optional[str], needle: Optional[str]) -> bool:
    """
    Case-insensitive substring test.

    Whitespace is compared as-is; runs of whitespace in the markup are
    not collapsed.
    """
    if haystack is None or needle is None:
        return False
    return needle.lower() in haystack.lower()
