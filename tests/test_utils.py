"""
Tests for the utils module.

Tests cover:
- Relative and absolute href resolution
- Rejection of empty and malformed hrefs
- Case-insensitive text matching
- Environment variable helpers
"""

import os
from unittest.mock import patch

import pytest

from page_watcher.utils import (
    contains_text,
    get_env_flag,
    get_env_var,
    get_logger,
    parse_url,
    resolve_url,
)


class TestResolveUrl:
    """Tests for href resolution."""

    def test_root_relative_href(self):
        """Test root-relative hrefs inherit scheme and host."""
        assert resolve_url("https://x.test", "/products/7") == "https://x.test/products/7"

    def test_absolute_href_unchanged(self):
        """Test absolute hrefs are returned as-is."""
        href = "https://other.test/shop/item?id=3"
        assert resolve_url("https://x.test/page", href) == href

    def test_dot_segments_normalized(self):
        """Test parent path segments are resolved."""
        result = resolve_url("https://x.test/a/b/", "../c")
        assert result == "https://x.test/a/c"

    def test_query_and_fragment_preserved(self):
        """Test query string and fragment survive resolution."""
        result = resolve_url("https://x.test/list/", "item?color=red#reviews")
        assert result == "https://x.test/list/item?color=red#reviews"

    def test_scheme_relative_href(self):
        """Test scheme-relative hrefs take the base scheme."""
        assert resolve_url("https://x.test/", "//cdn.test/img") == "https://cdn.test/img"

    def test_empty_href(self):
        """Test empty and blank hrefs yield no result."""
        assert resolve_url("https://x.test", "") is None
        assert resolve_url("https://x.test", "   ") is None
        assert resolve_url("https://x.test", None) is None

    def test_malformed_href(self):
        """Test unparsable hrefs yield no result instead of raising."""
        assert resolve_url("https://x.test", "http://[::1") is None
        assert resolve_url("https://x.test", "http://shop.test:port/") is None

    def test_relative_result_shares_base_host(self):
        """Test any relative href resolves onto the base host."""
        for href in ["a", "./a", "/a", "a/b?c=1", "../../a"]:
            result = resolve_url("https://x.test/one/two/", href)
            assert result.startswith("https://x.test/")


class TestParseUrl:
    """Tests for URL parsing."""

    def test_valid_url(self):
        parsed = parse_url("https://x.test:8080/path")
        assert parsed is not None
        assert parsed.hostname == "x.test"
        assert parsed.port == 8080

    def test_invalid_ipv6(self):
        assert parse_url("https://[::1/path") is None


class TestContainsText:
    """Tests for case-insensitive matching."""

    def test_case_insensitive(self):
        """Test matching ignores case on both sides."""
        assert contains_text("Blue Widget IN STOCK", "in stock") is True
        assert contains_text("blue widget in stock", "IN Stock") is True

    def test_not_found(self):
        assert contains_text("Sold out", "in stock") is False

    def test_reflexive(self):
        """Test any non-empty text contains itself."""
        for text in ["a", "Mixed Case", "  spaced  ", "ÄÖÜ"]:
            assert contains_text(text, text) is True

    def test_whitespace_not_normalized(self):
        """Test runs of whitespace must match exactly."""
        assert contains_text("in  stock", "in stock") is False
        assert contains_text("in\nstock", "in stock") is False

    def test_none_input(self):
        assert contains_text(None, "x") is False
        assert contains_text("x", None) is False


class TestEnvHelpers:
    """Tests for environment variable helpers."""

    def test_get_env_var_required_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="WEBSITE_URL"):
                get_env_var("WEBSITE_URL", required=True)

    def test_get_env_var_strips(self):
        with patch.dict(os.environ, {"SEARCH_TEXT": "  in stock  "}, clear=True):
            assert get_env_var("SEARCH_TEXT") == "in stock"

    def test_get_env_var_default(self):
        with patch.dict(os.environ, {"CHECK_INTERVAL": " "}, clear=True):
            assert get_env_var("CHECK_INTERVAL", required=False, default="5m") == "5m"

    def test_get_env_flag(self):
        with patch.dict(os.environ, {"DRY_RUN": "Yes", "RUN_ONCE": "0"}, clear=True):
            assert get_env_flag("DRY_RUN") is True
            assert get_env_flag("RUN_ONCE") is False
            assert get_env_flag("MISSING", default=True) is True

    def test_logger_namespace(self):
        assert get_logger("fetch").name == "page_watcher.fetch"
