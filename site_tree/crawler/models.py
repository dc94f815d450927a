"""
Data models for the SiteTree crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class PageNode:
    """One page of the crawl tree.

    ``title`` and ``children`` stay ``None`` until the page is fetched (or
    copied from an earlier visit); such stubs serialize as ``{"url": ...}``.
    """

    url: str
    title: Optional[str] = None
    children: Optional[List[PageNode]] = None
    img: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_stub(self) -> bool:
        return self.title is None and self.children is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url}
        if self.title is not None:
            data["title"] = self.title
        if self.img is not None:
            data["img"] = self.img
        if self.error is not None:
            data["error"] = self.error
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(slots=True)
class CookieRecord:
    """First sighting of a cookie name, with every attribute the fetcher reported."""

    name: str
    first_found: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name}
        data.update({k: v for k, v in self.attributes.items() if k != "name"})
        data["firstFound"] = self.first_found
        return data


@dataclass(slots=True)
class IframeRecord:
    """First sighting of an iframe ``src``."""

    src: str
    first_found: str

    def to_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "firstFound": self.first_found}


@dataclass(slots=True)
class PageSnapshot:
    """What a fetcher saw on one page.

    ``url`` is the address actually loaded (after redirects); ``links`` are
    absolute anchor hrefs in document order, unfiltered.
    """

    url: str
    title: str
    links: List[str] = field(default_factory=list)
    iframe_sources: List[str] = field(default_factory=list)
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    screenshot: Optional[str] = None
