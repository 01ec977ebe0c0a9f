"""
Read-only document model for fetched pages.

Wraps a BeautifulSoup parse tree in small handle objects so the link
extraction code only sees the operations it needs: tag name, attributes,
direct and full text, and parent/child/descendant navigation.
"""

from typing import Iterator, List, Optional, Union

from bs4 import BeautifulSoup, CData, NavigableString, Tag

from page_watcher.utils import get_logger


# Module logger
logger = get_logger("document")

# Parser used for every page, matching what the rest of the pipeline expects
HTML_PARSER = "html.parser"

# String node types that count as visible text. Comments, doctypes and the
# contents of <script>/<style> use other NavigableString subclasses.
_TEXT_TYPES = (NavigableString, CData)


class DocumentParseError(Exception):
    """Raised when a page cannot be parsed into a document tree."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class Element:
    """Read-only handle on a single element of a parsed page."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    def __eq__(self, other) -> bool:
        return isinstance(other, Element) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"Element(<{self.tag}>)"

    @property
    def tag(self) -> str:
        return self._tag.name

    @property
    def is_anchor(self) -> bool:
        return self._tag.name == "a"

    def attr(self, name: str) -> Optional[str]:
        """
        Return an attribute value, or None when the attribute is absent.

        Multi-valued attributes such as class are joined with spaces.
        """
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def has_attr(self, name: str) -> bool:
        return self._tag.has_attr(name)

    @property
    def direct_text(self) -> str:
        """Text of this element's own text nodes, excluding child elements."""
        return "".join(
            str(child) for child in self._tag.children
            if type(child) in _TEXT_TYPES
        )

    @property
    def full_text(self) -> str:
        """Text of this element and all of its descendants."""
        return self._tag.get_text()

    def parents(self) -> Iterator["Element"]:
        """Yield ancestors from nearest to furthest, stopping below the document root."""
        for parent in self._tag.parents:
            if isinstance(parent, BeautifulSoup):
                break
            yield Element(parent)

    def children(self) -> List["Element"]:
        """Direct child elements, in document order."""
        return [Element(child) for child in self._tag.children if isinstance(child, Tag)]

    def first_anchor(self) -> Optional["Element"]:
        anchor = self._tag.find("a")
        return Element(anchor) if anchor is not None else None


class Document:
    """A parsed page. Built once per check cycle and never modified."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    @property
    def body(self) -> Optional[Element]:
        body = self._soup.body
        return Element(body) if body is not None else None

    @property
    def text(self) -> str:
        """
        Rendered text of the page: every text node outside <head> and <title>.

        html.parser keeps content found after a stray </body> or </html>
        outside the body element, and adds no body to fragments, so the
        body element alone is not a reliable source.
        """
        head = self._soup.head
        parts = []
        for string in self._soup.find_all(string=True):
            if type(string) not in _TEXT_TYPES:
                continue
            if any(
                parent is head or parent.name == "title"
                for parent in string.parents
            ):
                continue
            parts.append(str(string))
        return "".join(parts)

    def select(self, selector: str) -> List[Element]:
        """Elements matching a CSS selector, in document order."""
        return [Element(tag) for tag in self._soup.select(selector)]

    def anchors(self) -> List[Element]:
        return [Element(tag) for tag in self._soup.find_all("a")]

    def elements(self) -> Iterator[Element]:
        """Yield every element of the document in document order."""
        for tag in self._soup.find_all(True):
            yield Element(tag)


def parse_document(html: Union[bytes, str]) -> Document:
    """
    Parse raw HTML into a Document.

    Args:
        html: Page content as bytes (encoding detected by BeautifulSoup) or str.

    Returns:
        Parsed Document.

    Raises:
        DocumentParseError: If the content cannot be parsed.
    """
    if html is None:
        raise DocumentParseError("No HTML content to parse")

    try:
        soup = BeautifulSoup(html, HTML_PARSER)
    except Exception as e:
        raise DocumentParseError(f"Failed to parse HTML: {e}", original_error=e)

    logger.debug(f"Parsed document with {len(html)} bytes of markup")
    return Document(soup)
