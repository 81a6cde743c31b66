"""
Намерения редактирования и результат их применения.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from ..document import BufferPosition, Document


class IntentKind(enum.Enum):
    INSERT_TRIGGER = "insert_trigger"     # клавиша открытия выбора переменной
    DELETE_BACKWARD = "delete_backward"   # Backspace
    INSERT_TEXT = "insert_text"           # прямой ввод текста
    ESCAPE = "escape"


@dataclass(frozen=True)
class EditIntent:
    kind: IntentKind
    position: BufferPosition
    text: str = ""

    @staticmethod
    def trigger(position: BufferPosition) -> EditIntent:
        return EditIntent(IntentKind.INSERT_TRIGGER, position)

    @staticmethod
    def backspace(position: BufferPosition) -> EditIntent:
        return EditIntent(IntentKind.DELETE_BACKWARD, position)

    @staticmethod
    def type_text(position: BufferPosition, text: str) -> EditIntent:
        return EditIntent(IntentKind.INSERT_TEXT, position, text)

    @staticmethod
    def escape(position: BufferPosition) -> EditIntent:
        return EditIntent(IntentKind.ESCAPE, position)


@dataclass(frozen=True)
class EditOutcome:
    """
    Результат обработки намерения.

    handled=False — ядро намерение не обрабатывало, хост выполняет
    действие по умолчанию. prevent_default=True — хост должен подавить
    действие по умолчанию (например, вставку символа-триггера).
    """
    document: Document
    cursor: BufferPosition
    handled: bool = True
    prevent_default: bool = False
    picker_position: Optional[BufferPosition] = None


__all__ = ["IntentKind", "EditIntent", "EditOutcome"]
