"""site_tree.utils: Утилитарные функции для работы с URL и именами файлов."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple
from urllib.parse import urlsplit

from site_tree.logger import logger

__all__: Sequence[str] = (
    "slugify",
    "origin_of",
    "is_same_origin",
    "remove_duplicates",
)

_SLUG_RE = re.compile(r"[/:]")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def slugify(url: str) -> str:
    """Заменяет ``/`` и ``:`` на ``_``: ``https://a.b/c`` -> ``https___a.b_c``."""
    return _SLUG_RE.sub("_", url)


def origin_of(url: str) -> Tuple[str, str, int | None]:
    """Возвращает (scheme, host, port) - origin в смысле same-origin policy.

    Некорректный порт (``:99999``) -> ``ValueError``, как у :func:`urlsplit`.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    port = parts.port
    if port is None:
        port = _DEFAULT_PORTS.get(scheme)
    return scheme, (parts.hostname or "").lower(), port


def is_same_origin(url: str, other: str) -> bool:
    """Проверяет совпадение scheme+host+port двух URL; URL с битым портом чужой."""
    try:
        return origin_of(url) == origin_of(other)
    except ValueError:
        return False


def remove_duplicates(urls: Iterable[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    items = list(urls)
    unique = list(dict.fromkeys(items))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
