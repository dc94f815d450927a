"""
Crawl orchestration: builds the depth-bounded page tree from a seed URL.

Pages are visited depth-first, pre-order, one fetch at a time. A URL is
fetched at most once per run; later occurrences are filled in from the
visited registry without descending into them again.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from site_tree.config import CrawlConfig
from site_tree.crawler.context import CrawlContext
from site_tree.crawler.fetcher import PageFetcher
from site_tree.crawler.link_filter import LinkFilter
from site_tree.crawler.models import PageNode
from site_tree.errors import NavigationError
from site_tree.logger import get_logger

__all__ = ("TreeCrawler",)


class TreeCrawler:
    """Drives a :class:`PageFetcher` over the site and records what it finds."""

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: PageFetcher,
        context: Optional[CrawlContext] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.context = context if context is not None else CrawlContext()
        self.link_filter = LinkFilter(seed_url=config.url, exclude_patterns=tuple(config.exclude_patterns))
        self.fetch_count = 0
        self.logger = get_logger("crawler")

    async def run(self) -> PageNode:
        """Crawl from the configured seed URL and return the root of the tree."""
        root = PageNode(url=self.config.url)
        self.logger.info("Старт обхода: %s (max_depth=%d)", root.url, self.config.max_depth)
        await self.crawl(root)
        self.logger.info(
            "Завершено: %d страниц загружено, cookies: %d, iframes: %d",
            self.fetch_count,
            len(self.context.cookies),
            len(self.context.iframes),
        )
        return root

    async def crawl(self, node: PageNode, depth: int = 0) -> None:
        """Populate *node* and its subtree in place."""
        stack: List[Tuple[PageNode, int]] = [(node, depth)]
        while stack:
            current, level = stack.pop()
            if not await self._visit(current, level):
                continue
            # reversed so the first discovered child is popped first
            for child in reversed(current.children or []):
                stack.append((child, level + 1))

    async def _visit(self, node: PageNode, depth: int) -> bool:
        """Process one node; returns True when its children still need crawling."""
        if depth > self.config.max_depth:
            return False

        known = self.context.lookup(node.url)
        if known is not None:
            self.logger.info("Reusing route: %s", node.url)
            self._copy_from(node, known, backfill=depth < self.config.max_depth)
            return False

        self.logger.info("Loading: %s", node.url)
        await self._fetch_into(node)
        self.context.remember_page(node)
        return bool(node.children)

    def _copy_from(self, node: PageNode, known: PageNode, backfill: bool) -> None:
        # One level only: copied children get their title if already visited,
        # never their own children. Children past max_depth stay bare stubs.
        node.title = known.title
        node.img = known.img
        node.error = known.error
        node.children = []
        for child in known.children or []:
            copy = PageNode(url=child.url)
            visited = self.context.lookup(child.url)
            if backfill and visited is not None:
                copy.title = visited.title
            node.children.append(copy)

    async def _fetch_into(self, node: PageNode) -> None:
        self.fetch_count += 1
        try:
            snapshot = await self.fetcher.fetch(node.url)
        except NavigationError as exc:
            if self.config.on_error == "abort":
                self.logger.error("Navigation failed, aborting: %s", exc)
                raise
            self.logger.warning("Navigation failed, skipping: %s", exc)
            node.title = ""
            node.children = []
            node.error = exc.reason
            return

        links = self.link_filter.filter_links(snapshot.links, snapshot.url, node.url)
        node.title = snapshot.title
        node.children = [PageNode(url=link) for link in links]
        node.img = snapshot.screenshot

        new_iframes = self.context.record_iframes(
            LinkFilter.filter_iframes(snapshot.iframe_sources, snapshot.url), node.url
        )
        new_cookies = self.context.record_cookies(snapshot.cookies, node.url)
        self.logger.debug(
            "%s: %d links, %d new iframes, %d new cookies",
            node.url,
            len(links),
            new_iframes,
            new_cookies,
        )
