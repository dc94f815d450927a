"""
Per-run traversal state: the visited-page registry and the two
first-seen artifact registries (cookies by name, iframes by src).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from site_tree.crawler.models import CookieRecord, IframeRecord, PageNode


@dataclass(slots=True)
class CrawlContext:
    """Registries owned by one crawl run. Every key is written at most once."""

    pages: Dict[str, PageNode] = field(default_factory=dict)
    cookies: Dict[str, CookieRecord] = field(default_factory=dict)
    iframes: Dict[str, IframeRecord] = field(default_factory=dict)

    def is_visited(self, url: str) -> bool:
        return url in self.pages

    def lookup(self, url: str) -> Optional[PageNode]:
        return self.pages.get(url)

    def remember_page(self, node: PageNode) -> None:
        if node.url in self.pages:
            raise ValueError(f"page already registered: {node.url}")
        self.pages[node.url] = node

    def record_cookies(self, cookies: Iterable[Mapping[str, Any]], page_url: str) -> int:
        """Insert cookies whose name is new; returns how many were added."""
        added = 0
        for cookie in cookies:
            name = cookie.get("name")
            if name is None or name in self.cookies:
                continue
            self.cookies[name] = CookieRecord(name=name, first_found=page_url, attributes=dict(cookie))
            added += 1
        return added

    def record_iframes(self, sources: Iterable[str], page_url: str) -> int:
        """Insert iframe sources not seen before; returns how many were added."""
        added = 0
        for src in sources:
            if src in self.iframes:
                continue
            self.iframes[src] = IframeRecord(src=src, first_found=page_url)
            added += 1
        return added

    def cookies_payload(self) -> Dict[str, Dict[str, Any]]:
        return {name: record.to_dict() for name, record in self.cookies.items()}

    def iframes_payload(self) -> Dict[str, Dict[str, Any]]:
        return {src: record.to_dict() for src, record in self.iframes.items()}
