"""
Link extraction for matched pages.

Given a parsed page that contains the search phrase, this module finds the
hyperlink(s) a reader would consider "the link for this match". Several
strategies are applied in a fixed order and feed one deduplicated result:

1. If the page itself is a product page, the page URL is the answer.
2. Anchors whose own text contains the phrase.
3. Headings and product/item containers whose text contains the phrase.
4. Any element whose direct text contains the phrase.

Links whose URL contains "/products/" are ranked above all other links.
"""

from typing import List, Optional

from page_watcher.document import Document, Element
from page_watcher.utils import contains_text, get_logger, parse_url, resolve_url


# Module logger
logger = get_logger("extract")

# Path segment that marks a product detail page
PRODUCT_PATH_MARKER = "/products/"

# Elements likely to hold a product or listing title, checked in this order
PRODUCT_SELECTORS = [
    "h1",
    "h2",
    "h3",
    "[class*='product']",
    "[class*='item']",
    "[id*='product']",
    "[id*='item']",
]


def is_product_link(url: str) -> bool:
    """Return True if url looks like a product detail page."""
    return PRODUCT_PATH_MARKER in url


class LinkCandidates:
    """
    Ordered, deduplicated accumulator for candidate links.

    Product links and other links are kept in separate lists, each in the
    order the links were first discovered.
    """

    def __init__(self):
        self.seen = set()
        self.product_links: List[str] = []
        self.other_links: List[str] = []

    def add(self, link: Optional[str]) -> bool:
        """Add a resolved link. Returns False for empty or already seen links."""
        if not link or link in self.seen:
            return False

        self.seen.add(link)
        if is_product_link(link):
            self.product_links.append(link)
        else:
            self.other_links.append(link)
        return True

    def result(self) -> List[str]:
        """Product links if any were found, otherwise the other links."""
        if self.product_links:
            return list(self.product_links)
        return list(self.other_links)

    def __len__(self) -> int:
        return len(self.seen)


def _resolve_href(element: Element, base_url: str) -> Optional[str]:
    return resolve_url(base_url, element.attr("href"))


def find_closest_link(element: Element, base_url: str) -> Optional[str]:
    """
    Find the single most relevant link for an element.

    Checked in order, first hit wins:
    1. the element itself, if it is a link
    2. the nearest enclosing link
    3. the first link inside the element
    4. the first link inside each enclosing container, nearest first,
       preferring a product link over the nearest non-product one

    Args:
        element: Element whose text matched the phrase.
        base_url: URL of the page, for resolving relative hrefs.

    Returns:
        Absolute URL or None if no link could be associated.
    """
    if element.is_anchor and element.has_attr("href"):
        link = _resolve_href(element, base_url)
        if link:
            return link

    ancestors = list(element.parents())

    for parent in ancestors:
        if parent.is_anchor and parent.has_attr("href"):
            link = _resolve_href(parent, base_url)
            if link:
                return link

    child = element.first_anchor()
    if child is not None and child.has_attr("href"):
        link = _resolve_href(child, base_url)
        if link:
            return link

    fallback = None
    for parent in ancestors:
        anchor = parent.first_anchor()
        if anchor is None or not anchor.has_attr("href"):
            continue
        link = _resolve_href(anchor, base_url)
        if not link:
            continue
        if is_product_link(link):
            return link
        if fallback is None:
            fallback = link

    return fallback


def find_links_for_text(document: Document, base_url: str, search_text: str) -> List[str]:
    """
    Find links associated with occurrences of the search text.

    Args:
        document: Parsed page.
        base_url: URL the page was fetched from.
        search_text: Phrase to locate (compared case-insensitively).

    Returns:
        Absolute URLs ordered by relevance. Empty if no page-specific link
        was found, in which case callers fall back to base_url.
    """
    if not base_url or parse_url(base_url) is None:
        logger.error(f"Error parsing base URL: {base_url!r}")
        return []

    # Already on a product page: the page is the link
    if is_product_link(base_url) and contains_text(document.text, search_text):
        logger.debug(f"Base URL is a product page, using it directly: {base_url}")
        return [base_url]

    candidates = LinkCandidates()

    # Anchors that contain the text
    for anchor in document.anchors():
        if contains_text(anchor.full_text, search_text) and anchor.has_attr("href"):
            candidates.add(_resolve_href(anchor, base_url))

    # Headings and product containers
    for selector in PRODUCT_SELECTORS:
        for element in document.select(selector):
            if contains_text(element.full_text, search_text):
                candidates.add(find_closest_link(element, base_url))

    # Everything else, by direct text only
    for element in document.elements():
        if contains_text(element.direct_text, search_text):
            candidates.add(find_closest_link(element, base_url))

    logger.debug(
        f"Found {len(candidates.product_links)} product link(s) and "
        f"{len(candidates.other_links)} other link(s) for '{search_text}'"
    )

    return candidates.result()
