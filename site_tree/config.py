"""
Модуль для загрузки и валидации конфигурации SiteTree.
Используется Pydantic для описания схемы и проверки данных.

Источники настроек (в порядке возрастания приоритета):
файл YAML/JSON -> переменные окружения URL, DEPTH, OUTDIR -> опции CLI.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from site_tree.errors import ConfigurationError
from site_tree.utils import slugify

__all__ = ["CrawlConfig", "load_config", "config_from_env", "build_config", "DEFAULT_URL"]

DEFAULT_URL = "https://example.com/"
DEFAULT_OUTPUT_ROOT = Path("output")


class CrawlConfig(BaseModel):
    """Конфигурация для одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(DEFAULT_URL, description="Стартовый URL (seed).")
    max_depth: int = Field(2, ge=0, description="Максимальная глубина обхода ссылок.")
    output_dir: Optional[Path] = Field(None, description="Каталог для JSON-файлов; по умолчанию output/<slug>.")
    screenshots: bool = Field(False, description="Сохранять скриншоты страниц.")
    engine: Literal["browser", "http"] = Field("browser", description="Реализация загрузчика страниц.")
    timeout: float = Field(30.0, ge=0, description="Таймаут навигации (секунд), 0 - без ограничения.")
    on_error: Literal["abort", "skip"] = Field("abort", description="Что делать при ошибке навигации.")
    exclude_patterns: List[str] = Field(
        default_factory=lambda: [".pdf", ".ics"],
        description="Подстроки, при наличии которых ссылка не посещается.",
    )
    headless: bool = Field(True, description="Запуск браузера без окна.")
    user_agent: Optional[str] = Field(None, min_length=1, description="Заголовок User-Agent.")

    @field_validator("url", mode="before")
    def _check_url(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("url must be a string")
        v = v.strip()
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"url must be an absolute http(s) URL, got {v!r}")
        return v

    @property
    def resolved_output_dir(self) -> Path:
        """Каталог запуска: явно заданный или ``output/<slug(url)>``."""
        if self.output_dir is not None:
            return self.output_dir
        return DEFAULT_OUTPUT_ROOT / slugify(self.url)

    @property
    def timeout_ms(self) -> float:
        return self.timeout * 1000


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise ConfigurationError(f"Файл конфигурации не найден: {path_obj}")

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ConfigurationError(f"Неподдерживаемый формат конфига: {suffix}")


def _validate(data: Mapping[str, Any]) -> CrawlConfig:
    try:
        return CrawlConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Некорректная конфигурация: {exc}") from exc


def load_config(path: Union[str, Path]) -> CrawlConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlConfig.
    Любая проблема (нет файла, битый формат, неверные значения) -> ConfigurationError.
    """
    return _validate(_read_file(path))


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Собирает переопределения из переменных окружения URL, DEPTH и OUTDIR."""
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    if env.get("URL"):
        data["url"] = env["URL"]
    if env.get("DEPTH"):
        try:
            data["max_depth"] = int(env["DEPTH"])
        except ValueError as exc:
            raise ConfigurationError(f"DEPTH должен быть целым числом, получено {env['DEPTH']!r}") from exc
    if env.get("OUTDIR"):
        data["output_dir"] = env["OUTDIR"]
    return data


def build_config(
    path: Union[str, Path, None] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CrawlConfig:
    """Объединяет файл, окружение и явные переопределения (значения None пропускаются)."""
    data: Dict[str, Any] = _read_file(path) if path is not None else {}
    data.update(config_from_env(environ))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return _validate(data)
