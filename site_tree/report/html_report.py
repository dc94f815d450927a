"""site_tree.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_tree.crawler.context import CrawlContext
from site_tree.crawler.models import PageNode
from site_tree.errors import OutputError

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    root: PageNode,
    context: CrawlContext,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-отчёт (дерево, cookies, iframes) и сохраняет его по указанному пути.

    Args:
        root: корень дерева обхода.
        context: реестры, заполненные во время обхода.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с Jinja2-шаблонами (по умолчанию встроенная).

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context_vars: dict[str, Any] = {
        "root": root.to_dict(),
        "cookies": context.cookies_payload(),
        "iframes": context.iframes_payload(),
        "page_count": len(context.pages),
    }

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(template.render(**context_vars), encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Не удалось записать {output_path}: {exc}") from exc

    return output_path
