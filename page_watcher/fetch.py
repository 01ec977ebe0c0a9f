"""
Fetch module for the Page Watcher.

This module fetches the watched page with proper error handling. There is
no retry inside a cycle: a failed fetch is reported and the next scheduled
check tries again.
"""

from dataclasses import dataclass
from typing import Optional

import requests

from page_watcher.utils import get_logger, parse_url


# Module logger
logger = get_logger("fetch")

# Default configuration
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FetchResult:
    """
    Represents the result of fetching the watched page.

    Attributes:
        source_url: The URL that was fetched.
        html_content: Raw response body if successful, None otherwise.
        success: Whether the fetch was successful.
        error_message: Error description if fetch failed, None otherwise.
        status_code: HTTP status code if request was made, None otherwise.
    """
    source_url: str
    html_content: Optional[bytes]
    success: bool
    error_message: Optional[str] = None
    status_code: Optional[int] = None


def create_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """
    Create a requests session with browser-like default headers.

    Args:
        user_agent: User-Agent header to send.

    Returns:
        Configured requests.Session instance.
    """
    session = requests.Session()

    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })

    return session


def validate_url(url: str) -> bool:
    """
    Validate that a URL is well-formed and uses HTTP/HTTPS.

    Args:
        url: URL string to validate.

    Returns:
        True if URL is valid, False otherwise.
    """
    if not url:
        return False
    parsed = parse_url(url)
    if parsed is None:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def fetch_page(
    url: str,
    session: requests.Session,
    timeout: int = DEFAULT_TIMEOUT
) -> FetchResult:
    """
    Fetch a single page and return the result.

    Only a 2xx response counts as success; the body is kept as raw bytes so
    the parser can detect the document encoding itself.

    Args:
        url: URL to fetch.
        session: Configured requests session.
        timeout: Request timeout in seconds.

    Returns:
        FetchResult containing the fetch outcome.
    """
    logger.debug(f"Fetching URL: {url}")

    if not validate_url(url):
        logger.warning(f"Invalid URL format: {url}")
        return FetchResult(
            source_url=url,
            html_content=None,
            success=False,
            error_message="Invalid URL format"
        )

    try:
        response = session.get(url, timeout=timeout)

        if 200 <= response.status_code < 300:
            logger.info(f"Successfully fetched {url} ({len(response.content)} bytes)")
            return FetchResult(
                source_url=url,
                html_content=response.content,
                success=True,
                status_code=response.status_code
            )
        else:
            logger.warning(f"Error: received status code {response.status_code} for {url}")
            return FetchResult(
                source_url=url,
                html_content=None,
                success=False,
                error_message=f"HTTP {response.status_code}",
                status_code=response.status_code
            )

    except requests.exceptions.Timeout:
        logger.warning(f"Timeout fetching {url}")
        return FetchResult(
            source_url=url,
            html_content=None,
            success=False,
            error_message="Request timeout"
        )

    except requests.exceptions.ConnectionError as e:
        logger.warning(f"Connection error for {url}: {e}")
        return FetchResult(
            source_url=url,
            html_content=None,
            success=False,
            error_message=f"Connection error: {str(e)}"
        )

    except requests.exceptions.RequestException as e:
        logger.error(f"Request exception for {url}: {e}")
        return FetchResult(
            source_url=url,
            html_content=None,
            success=False,
            error_message=f"Request failed: {str(e)}"
        )
