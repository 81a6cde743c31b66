"""
Контроллер атомарного редактирования.

Интерпретирует намерения редактирования относительно позиции курсора.
В живом режиме плейсхолдеры атомарны: удаляются только целиком, а ввод
внутрь чипа отвергается. Скрытые директивы невидимы для курсора и
никогда не удаляются Backspace'ом.

В сыром режиме все токены — обычный текст: правка применяется к исходной
строке по абсолютному смещению, затем документ токенизируется заново.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import DEFAULT_CONFIG, EditorConfig
from ..document import (
    BufferPosition,
    Document,
    Resolved,
    gap_position,
    position_for_offset,
    resolve,
)
from ..errors import ChipEditError, InvalidPositionError
from ..template.lexer import tokenize
from ..template.tokens import LiteralToken, LogicToken, OutputToken
from ..view.renderer import ViewMode, is_spacer
from .intents import EditIntent, EditOutcome, IntentKind

logger = logging.getLogger(__name__)

PickerCallback = Callable[[BufferPosition], None]


class PickerState:
    """
    Отложенная сессия выбора переменной.

    Хранит только сохранённую позицию курсора; отмена сбрасывает её
    и никогда не трогает документ.
    """

    def __init__(self) -> None:
        self.position: Optional[BufferPosition] = None

    @property
    def active(self) -> bool:
        return self.position is not None

    def open(self, position: BufferPosition) -> None:
        self.position = position

    def cancel(self) -> bool:
        """Сбрасывает сессию; возвращает True, если она была активна."""
        was_active = self.position is not None
        self.position = None
        return was_active


class AtomicEditController:
    """
    Применяет намерения редактирования к документу.

    Операции тотальны для корректных позиций; позиция вне документа —
    ошибка вызывающего кода (InvalidPositionError), а не повод её подрезать.
    """

    def __init__(
        self,
        *,
        mode: ViewMode = ViewMode.LIVE,
        config: EditorConfig = DEFAULT_CONFIG,
        open_picker: Optional[PickerCallback] = None,
    ):
        self.mode = mode
        self.config = config
        self.picker = PickerState()
        self._open_picker = open_picker

    def apply(self, document: Document, intent: EditIntent) -> EditOutcome:
        logger.debug("Applying %s at %r in %s mode", intent.kind.value, intent.position, self.mode.value)

        if intent.kind is IntentKind.ESCAPE:
            return self._escape(document, intent.position)
        if intent.kind is IntentKind.INSERT_TRIGGER:
            return self._trigger(document, intent.position)

        if self.mode is ViewMode.RAW:
            if intent.kind is IntentKind.DELETE_BACKWARD:
                return self._raw_splice(document, intent.position, delete=1)
            return self._raw_splice(document, intent.position, insert=intent.text)

        if intent.kind is IntentKind.DELETE_BACKWARD:
            return self._delete_backward(document, intent.position)
        return self._insert_text(document, intent.position, intent.text)

    # --- триггер и Escape ----------------------------------------------

    def _trigger(self, document: Document, position: BufferPosition) -> EditOutcome:
        if self.mode is ViewMode.RAW:
            # В сыром режиме символ-триггер вводится как обычный текст
            resolve(document.tokens, position)
            return EditOutcome(document, position, handled=False)

        anchor = self._insertion_point(document, position)
        self.picker.open(anchor)
        logger.debug("Picker opened at %r", anchor)
        if self._open_picker is not None:
            self._open_picker(anchor)
        return EditOutcome(document, anchor, prevent_default=True, picker_position=anchor)

    def _escape(self, document: Document, position: BufferPosition) -> EditOutcome:
        resolve(document.tokens, position)
        was_active = self.picker.cancel()
        if was_active:
            logger.debug("Picker cancelled")
        return EditOutcome(document, position, handled=was_active)

    # --- живой режим ----------------------------------------------------

    def _delete_backward(self, document: Document, position: BufferPosition) -> EditOutcome:
        tokens = document.tokens
        resolved = resolve(tokens, position)

        if not resolved.is_gap:
            i, k = resolved.token_index, resolved.offset
            token = tokens[i]
            if isinstance(token, OutputToken):
                # Курсор внутри чипа: чип удаляется как одна «графема»
                return self._remove_chip(document, i)
            if isinstance(token, LogicToken):
                raise InvalidPositionError("Cursor inside a hidden directive", position)
            updated = document.replace(i, i + 1, [LiteralToken(token.text[:k - 1] + token.text[k:])])
            cursor = BufferPosition.at(i, k - 1) if k > 1 else gap_position(updated.tokens, i)
            return EditOutcome(updated, cursor, prevent_default=True)

        # Ближайший видимый токен перед зазором; скрытые директивы пропускаем
        j = resolved.gap - 1
        while j >= 0 and isinstance(tokens[j], LogicToken):
            j -= 1
        if j < 0:
            return EditOutcome(document, gap_position(tokens, resolved.gap), prevent_default=True)

        token = tokens[j]
        if isinstance(token, OutputToken):
            return self._remove_chip(document, j)

        remaining = token.text[:-1]
        updated = document.replace(j, j + 1, [LiteralToken(remaining)])
        cursor = BufferPosition.at(j, len(remaining)) if remaining else gap_position(updated.tokens, j)
        return EditOutcome(updated, cursor, prevent_default=True)

    def _remove_chip(self, document: Document, index: int) -> EditOutcome:
        logger.debug("Removing placeholder %r", document.tokens[index])
        updated = document.replace(index, index + 1, [])
        return EditOutcome(updated, gap_position(updated.tokens, index), prevent_default=True)

    def _insert_text(self, document: Document, position: BufferPosition, text: str) -> EditOutcome:
        tokens = document.tokens
        resolved = self._resolve_insertion(document, position)
        if not text:
            return EditOutcome(document, position, prevent_default=True)

        if not resolved.is_gap:
            i, k = resolved.token_index, resolved.offset
            literal = tokens[i].text
            updated = document.replace(i, i + 1, [LiteralToken(literal[:k] + text + literal[k:])])
            return EditOutcome(updated, BufferPosition.at(i, k + len(text)), prevent_default=True)

        g = resolved.gap
        spacer = self.config.spacer
        # Пробельная единица после чипа не редактируется: текст идёт в соседний литерал
        if g > 0 and isinstance(tokens[g - 1], LiteralToken) and not is_spacer(tokens, g - 1, spacer):
            merged = tokens[g - 1].text + text
            updated = document.replace(g - 1, g, [LiteralToken(merged)])
            return EditOutcome(updated, BufferPosition.at(g - 1, len(merged)), prevent_default=True)
        if g < len(tokens) and isinstance(tokens[g], LiteralToken) and not is_spacer(tokens, g, spacer):
            updated = document.replace(g, g + 1, [LiteralToken(text + tokens[g].text)])
        else:
            updated = document.replace(g, g, [LiteralToken(text)])
        return EditOutcome(updated, BufferPosition.at(g, len(text)), prevent_default=True)

    def _resolve_insertion(self, document: Document, position: BufferPosition) -> Resolved:
        """
        Проверяет точку вставки живого режима.

        Raises:
            ChipEditError: Точка внутри чипа.
            InvalidPositionError: Точка внутри скрытой директивы или вне документа.
        """
        resolved = resolve(document.tokens, position)
        if not resolved.is_gap:
            token = document.tokens[resolved.token_index]
            if isinstance(token, OutputToken):
                raise ChipEditError("Insertion point inside a placeholder chip", position)
            if isinstance(token, LogicToken):
                raise InvalidPositionError("Insertion point inside a hidden directive", position)
        return resolved

    def _insertion_point(self, document: Document, position: BufferPosition) -> BufferPosition:
        resolved = self._resolve_insertion(document, position)
        if resolved.is_gap:
            return gap_position(document.tokens, resolved.gap)
        return position

    # --- сырой режим ----------------------------------------------------

    def _raw_splice(self, document: Document, position: BufferPosition, *, delete: int = 0, insert: str = "") -> EditOutcome:
        offset = document.offset_of(position)
        if delete and offset == 0:
            return EditOutcome(document, position, handled=False)

        raw = document.raw
        start = offset - delete
        new_raw = raw[:start] + insert + raw[offset:]
        updated = document.with_tokens(
            tokenize(new_raw, opening_tags=self.config.opening_tags, closing_tags=self.config.closing_tags)
        )
        cursor = position_for_offset(updated.tokens, start + len(insert), atomic_chips=False)
        return EditOutcome(updated, cursor, prevent_default=True)


def apply_edit(
    document: Document,
    intent: EditIntent,
    *,
    mode: ViewMode = ViewMode.LIVE,
    config: EditorConfig = DEFAULT_CONFIG,
    open_picker: Optional[PickerCallback] = None,
) -> EditOutcome:
    """
    Применяет одно намерение без сохранения состояния выбора переменной между вызовами.
    """
    controller = AtomicEditController(mode=mode, config=config, open_picker=open_picker)
    return controller.apply(document, intent)


__all__ = ["PickerCallback", "PickerState", "AtomicEditController", "apply_edit"]
