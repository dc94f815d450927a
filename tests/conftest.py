# File: tests/conftest.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from site_tree.config import CrawlConfig
from site_tree.crawler.models import PageSnapshot
from site_tree.errors import NavigationError
from site_tree.logger import configure

BASE = "https://example.com"


def url(path: str) -> str:
    """Absolute URL on the fake site: url("a") -> https://example.com/a"""
    return f"{BASE}/{path}"


def pytest_configure(config):
    config.addinivalue_line("markers", "browser: needs a Playwright Chromium install")


@dataclass
class FakePage:
    title: str
    links: List[str] = field(default_factory=list)
    iframes: List[str] = field(default_factory=list)
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    final_url: Optional[str] = None


class FakeFetcher:
    """In-memory PageFetcher: serves FakePage objects and records every call."""

    def __init__(self, pages: Dict[str, FakePage], failing: tuple[str, ...] = ()) -> None:
        self.pages = pages
        self.failing = set(failing)
        self.calls: List[str] = []

    async def fetch(self, target: str) -> PageSnapshot:
        self.calls.append(target)
        if target in self.failing or target not in self.pages:
            raise NavigationError(target, "net::ERR_CONNECTION_REFUSED")
        page = self.pages[target]
        return PageSnapshot(
            url=page.final_url or target,
            title=page.title,
            links=list(page.links),
            iframe_sources=list(page.iframes),
            cookies=[dict(c) for c in page.cookies],
        )


def site(graph: Dict[str, List[str]], **extra: FakePage) -> Dict[str, FakePage]:
    """Build pages from {"a": ["b", "c"]}; page titles are the upper-cased names."""
    pages = {url(name): FakePage(title=name.upper(), links=[url(link) for link in links]) for name, links in graph.items()}
    for name, page in extra.items():
        pages[url(name)] = page
    return pages


@pytest.fixture()
def make_config(tmp_path: Path):
    """Return a factory for CrawlConfig pointing at a temporary output dir."""

    def _make(seed: str = "a", **kwargs: Any) -> CrawlConfig:
        kwargs.setdefault("output_dir", tmp_path / "out")
        kwargs.setdefault("exclude_patterns", [])
        return CrawlConfig(url=url(seed), **kwargs)

    return _make


@pytest.fixture(autouse=True)
def reset_logging():
    """CliRunner swaps sys.stdout; rebind the project handler after every test."""
    yield
    configure(level="INFO")
