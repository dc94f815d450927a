"""site_tree.errors: Иерархия исключений SiteTree."""

from __future__ import annotations

__all__ = ["SiteTreeError", "ConfigurationError", "NavigationError", "OutputError"]


class SiteTreeError(Exception):
    """Base class for all errors raised by SiteTree."""


class ConfigurationError(SiteTreeError):
    """Malformed seed URL, invalid depth or unreadable config file."""


class NavigationError(SiteTreeError):
    """The fetcher could not load *url* or the page never settled."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class OutputError(SiteTreeError):
    """Output directory preparation or a report write failed."""
