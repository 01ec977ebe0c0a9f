"""
Page Watcher - Periodic page monitoring with link-aware notifications.

This package provides functionality to:
- Fetch a web page on a fixed interval
- Check whether a search phrase appears in the page text
- Locate the links that belong to the match
- Notify via Discord webhook or email when the phrase is found
"""

__version__ = "1.0.0"
__author__ = "Page Watcher Team"
