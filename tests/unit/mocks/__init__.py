"""Mock classes for unit testing page-level helpers without a browser."""

from .mock_page import MockConsoleMessage, MockDialog, MockPage, MockPageError

__all__ = [
    "MockConsoleMessage",
    "MockDialog",
    "MockPage",
    "MockPageError",
]
