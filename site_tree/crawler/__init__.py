"""site_tree.crawler: обход сайта и построение дерева страниц."""

from site_tree.crawler.context import CrawlContext
from site_tree.crawler.crawler import TreeCrawler
from site_tree.crawler.models import CookieRecord, IframeRecord, PageNode, PageSnapshot

__all__ = ["CrawlContext", "TreeCrawler", "PageNode", "PageSnapshot", "CookieRecord", "IframeRecord"]
