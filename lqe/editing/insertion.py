"""
Вставка переменных.

Каталог переменных поставляется хостом и только читается. Выбранная
переменная превращается в плейсхолдер {{ name }}, который атомарно
вставляется в сохранённую позицию курсора, а за ним — одна
нередактируемая пробельная единица, чтобы следующий набранный символ
не прилипал к чипу.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..config import DEFAULT_CONFIG, EditorConfig
from ..document import BufferPosition, Document, resolve
from ..errors import ChipEditError, InvalidPositionError
from ..template.tokens import LiteralToken, LogicToken, OutputToken
from .intents import EditOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableDescriptor:
    name: str
    description: str = ""


class VariableCatalog:
    """Неизменяемый список доступных переменных с простым поиском."""

    def __init__(self, variables: Iterable[VariableDescriptor] = ()):
        self._variables: Tuple[VariableDescriptor, ...] = tuple(variables)

    def __iter__(self):
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def search(self, term: str) -> List[VariableDescriptor]:
        """
        Регистронезависимый поиск подстроки в имени или описании.

        Пустой запрос возвращает все переменные в исходном порядке.
        """
        if not term:
            return list(self._variables)
        needle = term.lower()
        return [
            v for v in self._variables
            if needle in v.name.lower() or needle in (v.description or "").lower()
        ]


class VariableInsertionService:
    """Строит плейсхолдер из переменной и вставляет его в документ."""

    def __init__(self, config: EditorConfig = DEFAULT_CONFIG):
        self.config = config

    def insert(self, document: Document, descriptor: VariableDescriptor, position: BufferPosition) -> EditOutcome:
        """
        Вставляет плейсхолдер и пробельную единицу в позицию.

        Returns:
            Новый документ; курсор стоит сразу после пробельной единицы

        Raises:
            ChipEditError: Позиция внутри существующего чипа.
            InvalidPositionError: Позиция внутри скрытой директивы или вне документа.
        """
        tokens = document.tokens
        resolved = resolve(tokens, position)
        chip = OutputToken.for_expression(descriptor.name)
        spacer = LiteralToken(self.config.spacer)

        if resolved.is_gap:
            at = resolved.gap
            updated = document.replace(at, at, [chip, spacer])
        else:
            at = resolved.token_index
            token = tokens[at]
            if isinstance(token, OutputToken):
                raise ChipEditError("Cannot insert a variable inside a placeholder chip", position)
            if isinstance(token, LogicToken):
                raise InvalidPositionError("Cannot insert a variable inside a hidden directive", position)
            # Литерал делится на два вокруг нового плейсхолдера
            head, tail = token.text[:resolved.offset], token.text[resolved.offset:]
            updated = document.replace(at, at + 1, [LiteralToken(head), chip, spacer, LiteralToken(tail)])
            at += 1

        logger.debug("Inserted %r at token %d", chip, at)
        cursor = BufferPosition.at(at + 1, len(spacer.text))
        return EditOutcome(updated, cursor, prevent_default=True)


def insert_variable(
    document: Document,
    descriptor: VariableDescriptor,
    position: BufferPosition,
    *,
    config: EditorConfig = DEFAULT_CONFIG,
) -> Document:
    """Вставляет плейсхолдер переменной и возвращает новый документ."""
    return VariableInsertionService(config).insert(document, descriptor, position).document


__all__ = [
    "VariableDescriptor",
    "VariableCatalog",
    "VariableInsertionService",
    "insert_variable",
]
