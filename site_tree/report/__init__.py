"""site_tree.report: Запись результатов обхода (JSON для визуализатора и HTML-сводка)."""

from site_tree.report.html_report import render_html
from site_tree.report.json_report import prepare_output_dir, render_json

__all__ = ["render_json", "render_html", "prepare_output_dir"]
