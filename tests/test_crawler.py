# Tests for the depth-first tree crawler, driven by an in-memory fetcher
from __future__ import annotations

import json
import logging
import random

import pytest

from conftest import FakeFetcher, FakePage, site, url
from site_tree.crawler.context import CrawlContext
from site_tree.crawler.crawler import TreeCrawler
from site_tree.crawler.models import PageNode
from site_tree.errors import NavigationError


async def run(config, pages, **kwargs):
    fetcher = FakeFetcher(pages, **kwargs)
    crawler = TreeCrawler(config, fetcher)
    root = await crawler.run()
    return root, crawler, fetcher


def depths(root: PageNode):
    """Yield (node, depth) for every node of the tree."""
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in node.children or []:
            stack.append((child, depth + 1))


# --------------------------------------------------------------------------- #
#                                 Scenarios                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_seed_link_filtered_and_depth_cut(make_config):
    pages = site({"a": ["b", "c"], "b": ["a"], "c": ["b"]})
    root, _, fetcher = await run(make_config(max_depth=1), pages)

    assert root.to_dict() == {
        "url": url("a"),
        "title": "A",
        "children": [
            {"url": url("b"), "title": "B", "children": []},
            # b under c sits at depth 2 and is left as a bare stub
            {"url": url("c"), "title": "C", "children": [{"url": url("b")}]},
        ],
    }
    assert fetcher.calls == [url("a"), url("b"), url("c")]


@pytest.mark.asyncio()
async def test_preorder_visiting_order(make_config):
    pages = site({"a": ["b", "c"], "b": ["d"], "c": ["e"], "d": [], "e": []})
    _, _, fetcher = await run(make_config(max_depth=5), pages)
    assert fetcher.calls == [url(p) for p in ("a", "b", "d", "c", "e")]


@pytest.mark.asyncio()
async def test_revisit_copies_one_level_of_titles(make_config):
    pages = site({"a": ["b", "c"], "b": ["d"], "d": ["c"], "c": ["b"]})
    root, crawler, fetcher = await run(make_config(max_depth=3), pages)

    assert fetcher.calls == [url(p) for p in ("a", "b", "d", "c")]
    b, c = root.children
    assert c.to_dict() == {
        "url": url("c"),
        "title": "C",
        "children": [{"url": url("b"), "title": "B"}],
    }
    # the reused node is a copy, not the registry entry itself
    assert c is not crawler.context.lookup(url("c"))
    assert c.children[0] is not b
    # the fresh visit of c, deep under b, kept its own stub child
    deep_c = b.children[0].children[0]
    assert deep_c.to_dict() == {"url": url("c"), "title": "C", "children": [{"url": url("b")}]}


@pytest.mark.asyncio()
async def test_revisit_at_max_depth_leaves_children_bare(make_config):
    pages = site({"a": ["b", "c"], "b": ["d"], "d": ["b"], "c": ["d"]})
    root, _, fetcher = await run(make_config(max_depth=2), pages)

    assert fetcher.calls == [url(p) for p in ("a", "b", "d", "c")]
    c = root.children[1]
    assert c.to_dict() == {
        "url": url("c"),
        "title": "C",
        "children": [{"url": url("d"), "title": "D", "children": [{"url": url("b")}]}],
    }


@pytest.mark.asyncio()
async def test_depth_zero_fetches_only_seed(make_config):
    pages = site({"a": ["b", "c"], "b": [], "c": []})
    root, _, fetcher = await run(make_config(max_depth=0), pages)

    assert fetcher.calls == [url("a")]
    assert [child.is_stub for child in root.children] == [True, True]


@pytest.mark.asyncio()
async def test_crawl_beyond_max_depth_is_noop(make_config):
    crawler = TreeCrawler(make_config(max_depth=1), FakeFetcher(site({"a": []})))
    node = PageNode(url=url("a"))
    await crawler.crawl(node, depth=2)
    assert node.is_stub
    assert crawler.context.pages == {}


@pytest.mark.asyncio()
async def test_progress_is_logged_in_visit_order(make_config, caplog):
    project_logger = logging.getLogger("SiteTree")
    project_logger.addHandler(caplog.handler)
    try:
        pages = site({"a": ["b", "c"], "b": [], "c": ["b"]})
        await run(make_config(max_depth=2), pages)
    finally:
        project_logger.removeHandler(caplog.handler)

    messages = [r.getMessage() for r in caplog.records if r.name == "SiteTree.crawler"]
    progress = [m for m in messages if m.startswith(("Loading:", "Reusing route:"))]
    assert progress == [
        f"Loading: {url('a')}",
        f"Loading: {url('b')}",
        f"Loading: {url('c')}",
        f"Reusing route: {url('b')}",
    ]


# --------------------------------------------------------------------------- #
#                               Link handling                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_links_filtered_and_deduplicated(make_config):
    pages = site(
        {"b": [], "c": []},
        a=FakePage(
            title="A",
            links=[
                url("b"),
                url("a"),
                "https://other.org/x",
                "http://example.com/b",
                url("c"),
                url("b"),
                url("report.pdf"),
                "mailto:info@example.com",
            ],
        ),
    )
    root, _, _ = await run(make_config(max_depth=0, exclude_patterns=[".pdf"]), pages)
    assert [child.url for child in root.children] == [url("b"), url("c")]


@pytest.mark.asyncio()
async def test_redirected_page_does_not_link_to_itself(make_config):
    pages = site(
        {"b": [], "home": []},
        a=FakePage(title="A", final_url=url("home"), links=[url("home"), url("b")]),
    )
    root, _, _ = await run(make_config(max_depth=1), pages)
    assert [child.url for child in root.children] == [url("b")]


# --------------------------------------------------------------------------- #
#                            Cookies and iframes                              #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_cookie_first_seen_wins(make_config):
    pages = site(
        {},
        a=FakePage(title="A", links=[url("b")], cookies=[{"name": "session", "value": "1", "domain": "example.com"}]),
        b=FakePage(
            title="B",
            cookies=[
                {"name": "session", "value": "2", "domain": "example.com", "secure": True},
                {"name": "_ga", "value": "GA1", "domain": ".example.com"},
            ],
        ),
    )
    _, crawler, _ = await run(make_config(max_depth=1), pages)
    cookies = crawler.context.cookies_payload()

    assert list(cookies) == ["session", "_ga"]
    assert cookies["session"] == {
        "name": "session",
        "value": "1",
        "domain": "example.com",
        "firstFound": url("a"),
    }
    assert cookies["_ga"]["firstFound"] == url("b")


@pytest.mark.asyncio()
async def test_iframe_first_seen_wins(make_config):
    video = "https://www.youtube.com/embed/xyz"
    pages = site(
        {},
        a=FakePage(title="A", links=[url("b")], iframes=["", url("a"), video]),
        b=FakePage(title="B", iframes=[video, "https://maps.example.net/embed"]),
    )
    _, crawler, _ = await run(make_config(max_depth=1), pages)

    assert crawler.context.iframes_payload() == {
        video: {"src": video, "firstFound": url("a")},
        "https://maps.example.net/embed": {"src": "https://maps.example.net/embed", "firstFound": url("b")},
    }


# --------------------------------------------------------------------------- #
#                                  Failures                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_navigation_error_aborts_by_default(make_config):
    pages = site({"a": ["b", "c"], "c": []})
    fetcher = FakeFetcher(pages)
    crawler = TreeCrawler(make_config(max_depth=1), fetcher)

    with pytest.raises(NavigationError) as excinfo:
        await crawler.run()
    assert excinfo.value.url == url("b")
    assert url("c") not in fetcher.calls


@pytest.mark.asyncio()
async def test_navigation_error_skip_degrades_to_leaf(make_config):
    pages = site({"a": ["b", "c"], "c": ["b"]})
    root, crawler, fetcher = await run(make_config(max_depth=2, on_error="skip"), pages, failing=(url("b"),))

    b, c = root.children
    assert b.to_dict() == {
        "url": url("b"),
        "title": "",
        "error": "net::ERR_CONNECTION_REFUSED",
        "children": [],
    }
    assert c.children[0].error == "net::ERR_CONNECTION_REFUSED"
    assert fetcher.calls.count(url("b")) == 1
    assert crawler.context.is_visited(url("b"))


# --------------------------------------------------------------------------- #
#                              Global properties                              #
# --------------------------------------------------------------------------- #


def random_site(seed: int, size: int = 12):
    rnd = random.Random(seed)
    names = [f"p{i}" for i in range(size)]
    return site({name: rnd.sample(names, rnd.randint(0, 5)) for name in names})


@pytest.mark.asyncio()
@pytest.mark.parametrize("seed", range(8))
@pytest.mark.parametrize("max_depth", [0, 1, 3])
async def test_tree_properties_on_random_sites(make_config, seed, max_depth):
    pages = random_site(seed)
    root, crawler, fetcher = await run(make_config(seed="p0", max_depth=max_depth), pages)

    # at most one fetch per URL
    assert len(fetcher.calls) == len(set(fetcher.calls))
    assert set(fetcher.calls) == set(crawler.context.pages)

    for node, depth in depths(root):
        # nothing below the depth bound is explored
        if depth > max_depth:
            assert node.title is None
            assert not node.children
        # no self-loops, seed never a child
        for child in node.children or []:
            assert child.url != node.url
            assert child.url != url("p0")


@pytest.mark.asyncio()
async def test_output_is_deterministic(make_config):
    dumps = []
    for _ in range(2):
        root, _, _ = await run(make_config(seed="p0", max_depth=3), random_site(42))
        dumps.append(json.dumps(root.to_dict(), indent=1))
    assert dumps[0] == dumps[1]


@pytest.mark.asyncio()
async def test_explicit_context_is_used(make_config):
    context = CrawlContext()
    crawler = TreeCrawler(make_config(max_depth=1), FakeFetcher(site({"a": ["b"], "b": []})), context)
    await crawler.run()
    assert list(context.pages) == [url("a"), url("b")]
