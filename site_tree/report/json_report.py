# site_tree/report/json_report.py

"""
Генерация JSON-отчётов для проекта SiteTree.

Каталог запуска очищается перед записью, затем в него пишутся
crawl.json (дерево), cookies.json и iframes.json.
"""
from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Dict

from site_tree.crawler.context import CrawlContext
from site_tree.crawler.models import PageNode
from site_tree.errors import OutputError
from site_tree.logger import logger

CRAWL_FILE = "crawl.json"
COOKIES_FILE = "cookies.json"
IFRAMES_FILE = "iframes.json"


def prepare_output_dir(output_dir: Path | str) -> Path:
    """
    Создаёт каталог (если его нет) и удаляет всё, что осталось от прошлого запуска.

    :raises OutputError: если каталог нельзя создать или очистить
    """
    out = Path(output_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
        for entry in out.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
    except OSError as exc:
        raise OutputError(f"Не удалось подготовить каталог {out}: {exc}") from exc
    logger.debug("Output directory ready: %s", out)
    return out


def _dump(data: Any, path: Path) -> Path:
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=1)
    except OSError as exc:
        raise OutputError(f"Не удалось записать {path}: {exc}") from exc
    return path


def render_json(root: PageNode, context: CrawlContext, output_dir: Path | str) -> Dict[str, Path]:
    """
    Сохраняет дерево и оба реестра в *output_dir* (каталог уже подготовлен).

    :return: имя отчёта -> путь к файлу

    Пример:
    ```python
    paths = render_json(root, crawler.context, 'output/https___example.com_')
    print(paths["crawl"])
    ```
    """
    out = Path(output_dir)
    paths = {
        "crawl": _dump(root.to_dict(), out / CRAWL_FILE),
        "cookies": _dump(context.cookies_payload(), out / COOKIES_FILE),
        "iframes": _dump(context.iframes_payload(), out / IFRAMES_FILE),
    }
    for path in paths.values():
        logger.info("Записан отчёт: %s", path)
    return paths
