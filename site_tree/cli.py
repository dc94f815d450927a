#!/usr/bin/env python3
"""
Точка входа для запуска SiteTree через командную строку.

Команды:
  crawl     Обойти сайт и записать crawl.json, cookies.json, iframes.json
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)

Переменные окружения URL, DEPTH и OUTDIR переопределяют конфиг,
опции команды crawl переопределяют всё остальное.

Пример:
  site-tree crawl --url https://example.com/ --depth 2 --screenshots
"""
import asyncio
import sys
from pathlib import Path

import click

from site_tree import __version__
from site_tree.config import build_config
from site_tree.engine import start_crawl
from site_tree.errors import SiteTreeError
from site_tree.logger import init_logging
from site_tree.report.html_report import render_html

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteTree, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file):
    """Группа команд SiteTree CLI."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--url', '-u', default=None, help='Стартовый URL (переопределяет URL из окружения).')
@click.option('--depth', '-d', 'max_depth', type=int, default=None, help='Максимальная глубина обхода.')
@click.option(
    '--out-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для JSON-файлов (по умолчанию output/<slug>).'
)
@click.option('--screenshots', is_flag=True, help='Сохранять скриншот каждой страницы.')
@click.option('--engine', type=click.Choice(['browser', 'http']), default=None, help='Загрузчик страниц.')
@click.option('--timeout', type=float, default=None, help='Таймаут навигации, секунд (0 - без ограничения).')
@click.option(
    '--on-error', 'on_error',
    type=click.Choice(['abort', 'skip']),
    default=None,
    help='abort - прервать запуск, skip - оставить страницу пустым листом.'
)
@click.option('--exclude', 'exclude_patterns', multiple=True, help='Подстрока URL, которую не посещать (можно повторять).')
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Дополнительно сохранить HTML-сводку в файл'
)
@click.pass_context
def crawl(ctx, url, max_depth, output_dir, screenshots, engine, timeout, on_error, exclude_patterns, html_output):
    """Обойти сайт и записать отчёты."""
    overrides = {
        'url': url,
        'max_depth': max_depth,
        'output_dir': output_dir,
        'screenshots': screenshots or None,
        'engine': engine,
        'timeout': timeout,
        'on_error': on_error,
        'exclude_patterns': list(exclude_patterns) or None,
    }
    try:
        cfg = build_config(ctx.obj['config_path'], overrides)
    except SiteTreeError as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    click.echo(f'Crawling {cfg.url} (depth {cfg.max_depth})')
    try:
        result = asyncio.run(start_crawl(cfg))
    except SiteTreeError as e:
        print_error(f'Ошибка при обходе: {e}')
    except Exception as e:
        print_error(f'Непредвиденная ошибка при обходе: {e}')

    for name, path in result.files.items():
        click.echo(f'{name}: {path}')

    if html_output:
        try:
            saved_html = render_html(result.root, result.context, html_output)
            click.echo(f'HTML report: {saved_html}')
        except SiteTreeError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать итоговую конфигурацию в JSON."""
    try:
        cfg = build_config(ctx.obj['config_path'])
    except SiteTreeError as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
