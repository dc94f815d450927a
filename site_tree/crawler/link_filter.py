# site_tree/crawler/link_filter.py
"""
Link filtering policy applied to a page's anchors before they become
children in the crawl tree.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from site_tree.utils import is_same_origin, remove_duplicates


@dataclass(slots=True)
class LinkFilter:
    """
    Keeps same-origin links only and drops the page itself, the seed URL and
    anything containing one of ``exclude_patterns``.

    Comparison is by exact string; no URL normalization is applied.
    """

    seed_url: str
    exclude_patterns: Sequence[str] = field(default_factory=tuple)

    def is_excluded(self, url: str) -> bool:
        return any(pattern in url for pattern in self.exclude_patterns)

    def filter_links(self, links: Iterable[str], page_url: str, requested_url: str | None = None) -> List[str]:
        """
        Return the followable links of a page, in discovery order, without duplicates.

        ``page_url`` is the address the page was loaded from (after redirects)
        and defines the origin; ``requested_url`` is the tree node's own URL.
        """
        own = {page_url, requested_url or page_url}
        kept: List[str] = []
        for link in links:
            if not link or link in own or link == self.seed_url:
                continue
            if self.is_excluded(link):
                continue
            if not is_same_origin(link, page_url):
                continue
            kept.append(link)
        return remove_duplicates(kept)

    @staticmethod
    def filter_iframes(sources: Iterable[str], page_url: str) -> List[str]:
        """Drop empty sources and self-references, dedupe preserving order."""
        return remove_duplicates(src for src in sources if src and src != page_url)
