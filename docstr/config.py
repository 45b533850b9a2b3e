"""
Загрузчик конфигурации docstr.yaml.

Конфигурация влияет только на CLI (формат вывода, имя макроса,
уровень логирования) и никогда не меняет семантику раскрытия.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

CONFIG_FILENAME = "docstr.yaml"

_yaml = YAML(typ="safe")

OutputFormat = Literal["text", "json"]


class DocstrConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: OutputFormat = "text"
    macro: str = "docstr"
    log_level: str = "WARNING"

    @field_validator("macro")
    @classmethod
    def _macro_is_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"macro name must be an identifier, got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level


DEFAULT_CONFIG = DocstrConfig()


def _read_yaml_map(path: Path) -> dict:
    """Читает YAML файл и возвращает словарь."""
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_config(root: Path, explicit: Optional[Path] = None) -> DocstrConfig:
    """
    Загружает конфигурацию.

    Args:
        root: Каталог, в котором ищется docstr.yaml
        explicit: Путь из --config (файл обязан существовать)

    Returns:
        Конфигурация (значения по умолчанию, если файла нет)

    Raises:
        ConfigError: Файл не найден, не является YAML-словарём или не прошёл валидацию
    """
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigError(f"Config file not found: {explicit}")
        path = explicit
    else:
        path = root / CONFIG_FILENAME
        if not path.is_file():
            return DEFAULT_CONFIG

    raw = _read_yaml_map(path)
    try:
        return DocstrConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e


__all__ = ["DocstrConfig", "DEFAULT_CONFIG", "CONFIG_FILENAME", "load_config"]
