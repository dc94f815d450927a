# site_tree/crawler/fetcher.py
"""
Fetcher module: loads one page and reports its title, anchors, iframes and
the cookies visible after navigation.

Two implementations share the :class:`PageFetcher` interface:

* :class:`BrowserFetcher` drives headless Chromium through Playwright and
  sees what a user sees, including script-rendered links and shadow DOM.
* :class:`HttpFetcher` downloads raw HTML with aiohttp and parses it with
  BeautifulSoup; good enough for static sites and for tests.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urljoin

from aiohttp import ClientError, ClientSession, ClientTimeout, CookieJar
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from site_tree.config import CrawlConfig
from site_tree.crawler.models import PageSnapshot
from site_tree.errors import NavigationError
from site_tree.logger import get_logger
from site_tree.utils import slugify

__all__ = ("PageFetcher", "BrowserFetcher", "HttpFetcher", "create_fetcher")

log = get_logger("fetcher")

# Runs inside the page. Walks every element, descending into open shadow
# roots, and returns the href of each anchor in document order.
_COLLECT_ANCHORS_JS = """
() => {
  const all = [];
  const walk = (nodes) => {
    for (const el of nodes) {
      all.push(el);
      if (el.shadowRoot) {
        walk(el.shadowRoot.querySelectorAll('*'));
      }
    }
  };
  walk(document.querySelectorAll('*'));
  return all
    .filter(el => el.localName === 'a' && typeof el.href === 'string' && el.href)
    .map(a => a.href);
}
"""

_COLLECT_IFRAMES_JS = """
() => {
  const all = [];
  const walk = (nodes) => {
    for (const el of nodes) {
      all.push(el);
      if (el.shadowRoot) {
        walk(el.shadowRoot.querySelectorAll('*'));
      }
    }
  };
  walk(document.querySelectorAll('*'));
  return all
    .filter(el => el.localName === 'iframe')
    .map(f => f.src);
}
"""


class PageFetcher(Protocol):
    """Anything that can turn a URL into a :class:`PageSnapshot`."""

    async def fetch(self, url: str) -> PageSnapshot:
        """Load *url*; raise :class:`NavigationError` if it cannot be loaded."""
        ...


def screenshot_name(url: str) -> str:
    return f"{slugify(url)}.png"


class BrowserFetcher:
    """Playwright-backed fetcher; one browser context for the whole run."""

    def __init__(self, config: CrawlConfig, screenshot_dir: Optional[Path] = None) -> None:
        self.config = config
        self.screenshot_dir = screenshot_dir
        self._playwright = None
        self._browser = None
        self._context = None

    async def __aenter__(self) -> BrowserFetcher:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        ctx_kwargs: Dict[str, Any] = {}
        if self.config.user_agent:
            ctx_kwargs["user_agent"] = self.config.user_agent
        self._context = await self._browser.new_context(**ctx_kwargs)
        log.debug("Chromium started (headless=%s)", self.config.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(self, url: str) -> PageSnapshot:
        if self._context is None:
            raise RuntimeError("Browser not started")
        page = None
        try:
            page = await self._context.new_page()
            await page.goto(url, wait_until="networkidle", timeout=self.config.timeout_ms)

            links: List[str] = await page.evaluate(_COLLECT_ANCHORS_JS)
            iframes: List[str] = await page.evaluate(_COLLECT_IFRAMES_JS)
            title = await page.title()
            cookies = await self._context.cookies()

            screenshot = None
            if self.screenshot_dir is not None:
                screenshot = screenshot_name(url)
                await page.screenshot(path=str(self.screenshot_dir / screenshot), full_page=True)

            return PageSnapshot(
                url=page.url,
                title=title,
                links=links,
                iframe_sources=iframes,
                cookies=[dict(c) for c in cookies],
                screenshot=screenshot,
            )
        # a page that navigates away mid-read is a failed load as well
        except (PlaywrightTimeoutError, PlaywrightError) as exc:
            raise NavigationError(url, str(exc)) from exc
        finally:
            if page is not None:
                await page.close()


class HttpFetcher:
    """Static HTML fetcher (aiohttp + BeautifulSoup); no JavaScript is executed."""

    def __init__(self, config: CrawlConfig, screenshot_dir: Optional[Path] = None) -> None:
        self.config = config
        self.session: Optional[ClientSession] = None
        if screenshot_dir is not None:
            log.warning("Screenshots need the browser engine; ignored for engine=http")

    async def __aenter__(self) -> HttpFetcher:
        timeout = ClientTimeout(total=self.config.timeout or None)
        headers = {"User-Agent": self.config.user_agent} if self.config.user_agent else None
        self.session = ClientSession(
            timeout=timeout,
            headers=headers,
            cookie_jar=CookieJar(unsafe=True),
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> PageSnapshot:
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                final_url = str(resp.url)
                ctype = resp.headers.get("Content-Type", "").lower()
                html = await resp.text(errors="replace") if "html" in ctype else ""
        except (ClientError, asyncio.TimeoutError) as exc:
            raise NavigationError(url, str(exc) or type(exc).__name__) from exc
        except LookupError as exc:
            # unknown charset in Content-Type
            raise NavigationError(url, f"cannot decode body: {exc}") from exc

        title, links, iframes = parse_page(html, final_url)
        return PageSnapshot(
            url=final_url,
            title=title,
            links=links,
            iframe_sources=iframes,
            cookies=self._jar_cookies(),
        )

    def _jar_cookies(self) -> List[Dict[str, Any]]:
        if not self.session:
            raise RuntimeError("Session not initialized")
        cookies: List[Dict[str, Any]] = []
        for morsel in self.session.cookie_jar:
            cookies.append(
                {
                    "name": morsel.key,
                    "value": morsel.value,
                    "domain": morsel["domain"],
                    "path": morsel["path"] or "/",
                    "expires": morsel["expires"] or -1,
                    "httpOnly": bool(morsel["httponly"]),
                    "secure": bool(morsel["secure"]),
                    "sameSite": morsel["samesite"] or "Lax",
                }
            )
        return cookies


def parse_page(html: str, base_url: str) -> tuple[str, List[str], List[str]]:
    """Extract title, absolute anchor hrefs and absolute iframe sources from *html*."""
    if not html:
        return "", [], []
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = " ".join(title_tag.get_text().split()) if title_tag else ""

    links = [urljoin(base_url, a["href"].strip()) for a in soup.find_all("a", href=True)]
    iframes = [urljoin(base_url, f["src"].strip()) for f in soup.find_all("iframe", src=True)]
    return title, links, iframes


def create_fetcher(config: CrawlConfig, screenshot_dir: Optional[Path] = None):
    """Build the fetcher selected by ``config.engine``."""
    if config.engine == "http":
        return HttpFetcher(config, screenshot_dir)
    return BrowserFetcher(config, screenshot_dir)
