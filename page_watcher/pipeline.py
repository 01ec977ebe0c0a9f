"""
Match pipeline for the Page Watcher.

One check cycle runs: fetch → parse → match → extract links → notify.
Every per-cycle failure is logged and ends the cycle early; none of them
propagate to the scheduler.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Union

import requests

from page_watcher.config import Config
from page_watcher.document import DocumentParseError, parse_document
from page_watcher.extract import find_links_for_text
from page_watcher.fetch import fetch_page
from page_watcher.notify import NotificationError, Notifier
from page_watcher.utils import contains_text, get_logger


# Module logger
logger = get_logger("pipeline")


@dataclass
class MatchResult:
    """
    Outcome of checking one page.

    Attributes:
        matched: Whether the search text appears in the page body.
        links: Links for the match, most relevant first. Empty when not
               matched, never empty when matched.
    """
    matched: bool
    links: List[str] = field(default_factory=list)


def check_page(html: Union[bytes, str], base_url: str, search_text: str) -> MatchResult:
    """
    Decide whether a page matches and which links belong to the match.

    Args:
        html: Raw page content.
        base_url: URL the page was fetched from.
        search_text: Phrase to look for (case-insensitive).

    Returns:
        MatchResult. A parse failure is logged and reported as no match.
    """
    try:
        document = parse_document(html)
    except DocumentParseError as e:
        logger.error(f"Error parsing HTML: {e}")
        return MatchResult(matched=False, links=[])

    if not contains_text(document.text, search_text):
        return MatchResult(matched=False, links=[])

    links = find_links_for_text(document, base_url, search_text)
    if not links:
        logger.debug("No specific links found, falling back to the page URL")
        links = [base_url]

    return MatchResult(matched=True, links=links)


def send_notifications(
    notifiers: Sequence[Notifier],
    source_url: str,
    search_text: str,
    links: Sequence[str],
    timestamp: datetime
) -> int:
    """
    Hand a match to every notifier.

    A failing notifier is logged and does not prevent the others from
    running.

    Returns:
        Number of notifiers that delivered successfully.
    """
    delivered = 0
    for notifier in notifiers:
        try:
            notifier.notify(source_url, search_text, links, timestamp)
            delivered += 1
        except NotificationError as e:
            logger.error(f"Failed to send {notifier.name} notification: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error in {notifier.name} notifier: {e}")
    return delivered


def run_check(
    config: Config,
    session: requests.Session,
    notifiers: Sequence[Notifier],
    now: Optional[datetime] = None
) -> MatchResult:
    """
    Run one check cycle against the configured page.

    Args:
        config: Loaded configuration.
        session: HTTP session used to fetch the page.
        notifiers: Notifiers to call when the page matches.
        now: Timestamp of the check. Defaults to the current time.

    Returns:
        MatchResult for this cycle.
    """
    timestamp = now or datetime.now()
    logger.info(f"[{timestamp.strftime('%Y-%m-%d %H:%M:%S')}] Checking website...")

    fetch_result = fetch_page(config.website_url, session, timeout=config.request_timeout)
    if not fetch_result.success:
        logger.error(f"Error fetching website: {fetch_result.error_message}")
        return MatchResult(matched=False, links=[])

    result = check_page(fetch_result.html_content, config.website_url, config.search_text)

    if not result.matched:
        logger.info("No match found.")
        return result

    logger.info(f"Match found! {len(result.links)} link(s) for '{config.search_text}'")
    for link in result.links:
        logger.debug(f"  {link}")

    delivered = send_notifications(
        notifiers,
        config.website_url,
        config.search_text,
        result.links,
        timestamp
    )
    logger.info(f"Notifications delivered: {delivered}/{len(notifiers)}")

    return result
