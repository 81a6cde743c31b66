"""
Конфигурация редактора.

Всё здесь необязательно: EditorConfig() даёт поведение стандартного
Liquid-редактора. YAML-файл может переопределить отдельные ключи, например:

    opening_tags: [if, unless, case, for, capture, form]
    closing_tags: [endif, endunless, endcase, endfor, endcapture, endform]
    trigger_key: "{"
    keep_line_breaks: true
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .template.tokens import DEFAULT_CLOSING_TAGS, DEFAULT_OPENING_TAGS

_yaml = YAML(typ="safe")

NBSP = "\u00a0"

CHIP_CLASS = "highlight-liquid"
MARKER_CLASS = "liquid-logic"
SPACER_CLASS = "liquid-spacer"


def _assert_only_keys(d: Dict[str, Any] | None, allowed: Iterable[str], *, ctx: str) -> None:
    if d is None:
        return
    allowed_set = set(allowed)
    extra = set(d.keys()) - allowed_set
    if extra:
        raise ConfigError(f"{ctx}: unknown key(s): {', '.join(sorted(extra))}")


def _tag_set(value: Any, *, key: str) -> FrozenSet[str]:
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ConfigError(f"EditorConfig.{key} must be a list of tag names")
    if not all(isinstance(x, str) and x for x in value):
        raise ConfigError(f"EditorConfig.{key} must contain non-empty strings only")
    return frozenset(value)


def _non_empty_str(value: Any, *, key: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"EditorConfig.{key} must be a non-empty string")
    return value


@dataclass(frozen=True)
class EditorConfig:
    """
    Настройки ядра редактирования.

    opening_tags / closing_tags задают роли директив;
    trigger_key — клавиша, открывающая выбор переменной;
    spacer — пробельная единица после вставленного плейсхолдера;
    *_class — CSS-классы обёрток живого режима.
    """
    opening_tags: FrozenSet[str] = field(default_factory=lambda: DEFAULT_OPENING_TAGS)
    closing_tags: FrozenSet[str] = field(default_factory=lambda: DEFAULT_CLOSING_TAGS)
    trigger_key: str = "{"
    spacer: str = NBSP
    chip_class: str = CHIP_CLASS
    marker_class: str = MARKER_CLASS
    spacer_class: str = SPACER_CLASS
    # Переводы строк служат якорями директив при восстановлении текста
    keep_line_breaks: bool = True

    @staticmethod
    def from_dict(d: Optional[Dict[str, Any]]) -> EditorConfig:
        if not d:
            return EditorConfig()
        if not isinstance(d, dict):
            raise ConfigError("EditorConfig must be a mapping")
        _assert_only_keys(
            d,
            [
                "opening_tags", "closing_tags", "trigger_key", "spacer",
                "chip_class", "marker_class", "spacer_class", "keep_line_breaks",
            ],
            ctx="EditorConfig",
        )
        defaults = EditorConfig()
        opening = _tag_set(d["opening_tags"], key="opening_tags") if "opening_tags" in d else defaults.opening_tags
        closing = _tag_set(d["closing_tags"], key="closing_tags") if "closing_tags" in d else defaults.closing_tags
        overlap = opening & closing
        if overlap:
            raise ConfigError(f"EditorConfig: tag(s) both opening and closing: {', '.join(sorted(overlap))}")

        trigger_key = _non_empty_str(d.get("trigger_key", defaults.trigger_key), key="trigger_key")
        if len(trigger_key) != 1:
            raise ConfigError("EditorConfig.trigger_key must be a single character")

        keep_line_breaks = d.get("keep_line_breaks", defaults.keep_line_breaks)
        if not isinstance(keep_line_breaks, bool):
            raise ConfigError("EditorConfig.keep_line_breaks must be a boolean")

        return EditorConfig(
            opening_tags=opening,
            closing_tags=closing,
            trigger_key=trigger_key,
            spacer=_non_empty_str(d.get("spacer", defaults.spacer), key="spacer"),
            chip_class=_non_empty_str(d.get("chip_class", defaults.chip_class), key="chip_class"),
            marker_class=_non_empty_str(d.get("marker_class", defaults.marker_class), key="marker_class"),
            spacer_class=_non_empty_str(d.get("spacer_class", defaults.spacer_class), key="spacer_class"),
            keep_line_breaks=keep_line_breaks,
        )


DEFAULT_CONFIG = EditorConfig()


def load_config(path: Path) -> EditorConfig:
    """
    Загружает конфигурацию редактора из YAML-файла.

    Отсутствующий файл даёт настройки по умолчанию.

    Raises:
        ConfigError: Файл не является корректным YAML, не является отображением или содержит неизвестные ключи.
    """
    if not path.is_file():
        return EditorConfig()
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return EditorConfig.from_dict(raw)


__all__ = [
    "NBSP",
    "CHIP_CLASS",
    "MARKER_CLASS",
    "SPACER_CLASS",
    "EditorConfig",
    "DEFAULT_CONFIG",
    "load_config",
]
