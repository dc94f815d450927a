# File: site_tree/engine.py
"""site_tree.engine: Orchestration layer — подготовка каталога, обход сайта и запись отчётов."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from site_tree.config import CrawlConfig
from site_tree.crawler.context import CrawlContext
from site_tree.crawler.crawler import TreeCrawler
from site_tree.crawler.fetcher import PageFetcher, create_fetcher
from site_tree.crawler.models import PageNode
from site_tree.report.json_report import prepare_output_dir, render_json

__all__ = ["CrawlResult", "start_crawl"]


@dataclass(slots=True)
class CrawlResult:
    """Итог одного запуска: дерево, реестры и пути к записанным файлам."""

    root: PageNode
    context: CrawlContext
    output_dir: Path
    files: Dict[str, Path] = field(default_factory=dict)
    pages_fetched: int = 0


async def start_crawl(cfg: CrawlConfig, fetcher: Optional[PageFetcher] = None) -> CrawlResult:
    """
    Выполняет полный запуск: очистка каталога -> обход -> crawl/cookies/iframes.json.

    Parameters
    ----------
    cfg : CrawlConfig
        Конфигурация обхода.
    fetcher : PageFetcher, optional
        Готовый загрузчик; если не передан, создаётся по ``cfg.engine``
        и закрывается по окончании обхода.
    """
    output_dir = prepare_output_dir(cfg.resolved_output_dir)

    if fetcher is not None:
        crawler = TreeCrawler(cfg, fetcher)
        root = await crawler.run()
    else:
        screenshot_dir = output_dir if cfg.screenshots else None
        async with create_fetcher(cfg, screenshot_dir) as own_fetcher:
            crawler = TreeCrawler(cfg, own_fetcher)
            root = await crawler.run()

    files = render_json(root, crawler.context, output_dir)
    return CrawlResult(
        root=root,
        context=crawler.context,
        output_dir=output_dir,
        files=files,
        pages_fetched=crawler.fetch_count,
    )

