"""
Документ и позиции курсора.

Document — единственный источник истины сессии редактирования:
неизменяемая последовательность токенов. Любое изменение порождает
новый документ с увеличенной версией.

BufferPosition — абстрактная позиция курсора, не зависящая от DOM.
Каждая корректная позиция сводится либо к «зазору» между токенами
(граница перед токеном g, 0 <= g <= n), либо к смещению внутри токена.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .errors import InvalidPositionError
from .template.lexer import tokenize
from .template.tokens import LiteralToken, OutputToken, Token, serialize, token_offsets


class PositionKind(enum.Enum):
    IN_TOKEN = "in_token"
    BEFORE_CHIP = "before_chip"
    AFTER_CHIP = "after_chip"


@dataclass(frozen=True)
class BufferPosition:
    """
    Позиция курсора относительно токенов документа.

    IN_TOKEN(i, k) — смещение k внутри токена i; IN_TOKEN(len(tokens), 0)
    обозначает конец документа (единственная позиция пустого документа).
    BEFORE_CHIP(i) / AFTER_CHIP(i) — границы плейсхолдера i.
    """
    kind: PositionKind
    token_index: int
    offset: int = 0

    @staticmethod
    def at(token_index: int, offset: int = 0) -> BufferPosition:
        return BufferPosition(PositionKind.IN_TOKEN, token_index, offset)

    @staticmethod
    def before_chip(token_index: int) -> BufferPosition:
        return BufferPosition(PositionKind.BEFORE_CHIP, token_index)

    @staticmethod
    def after_chip(token_index: int) -> BufferPosition:
        return BufferPosition(PositionKind.AFTER_CHIP, token_index)

    def __repr__(self) -> str:
        if self.kind is PositionKind.IN_TOKEN:
            return f"BufferPosition.at({self.token_index}, {self.offset})"
        return f"BufferPosition.{self.kind.value}({self.token_index})"


@dataclass(frozen=True)
class Resolved:
    """
    Нормализованная позиция.

    gap задан — курсор стоит на границе перед токеном gap.
    Иначе курсор внутри токена token_index на смещении offset (0 < offset < len).
    """
    gap: Optional[int] = None
    token_index: int = -1
    offset: int = 0

    @property
    def is_gap(self) -> bool:
        return self.gap is not None


@dataclass(frozen=True)
class Document:
    """
    Упорядоченная последовательность токенов.

    Соседние литералы допустимы (редактирование их не склеивает),
    пустые литералы редактированием удаляются.
    """
    tokens: Tuple[Token, ...] = ()
    version: int = 0

    @classmethod
    def from_raw(
        cls,
        raw: str,
        *,
        opening_tags: Optional[Iterable[str]] = None,
        closing_tags: Optional[Iterable[str]] = None,
    ) -> Document:
        return cls(tokens=tuple(tokenize(raw, opening_tags=opening_tags, closing_tags=closing_tags)))

    @property
    def raw(self) -> str:
        return serialize(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def with_tokens(self, tokens: Iterable[Token]) -> Document:
        """Новый документ с заменённой последовательностью токенов и следующей версией."""
        return Document(tokens=tuple(tokens), version=self.version + 1)

    def replace(self, start: int, end: int, new_tokens: Iterable[Token]) -> Document:
        """Документ, в котором tokens[start:end] заменены на new_tokens."""
        tokens = list(self.tokens)
        tokens[start:end] = [t for t in new_tokens if not (isinstance(t, LiteralToken) and not t.text)]
        return self.with_tokens(tokens)

    def end_position(self) -> BufferPosition:
        return gap_position(self.tokens, len(self.tokens))

    def offset_of(self, position: BufferPosition) -> int:
        """Абсолютное смещение позиции в исходном тексте документа."""
        resolved = resolve(self.tokens, position)
        offsets = token_offsets(self.tokens)
        if resolved.is_gap:
            return offsets[resolved.gap]
        return offsets[resolved.token_index] + resolved.offset


def resolve(tokens: Sequence[Token], position: BufferPosition) -> Resolved:
    """
    Проверяет позицию и сводит её к зазору или смещению внутри токена.

    Raises:
        InvalidPositionError: Если позиция не адресует документ.
            Позиция никогда не «подрезается» до допустимой.
    """
    n = len(tokens)
    i = position.token_index

    if position.kind is PositionKind.IN_TOKEN:
        if i == n:
            if position.offset != 0:
                raise InvalidPositionError("Offset past end of document", position)
            return Resolved(gap=n)
        if not 0 <= i < n:
            raise InvalidPositionError("Token index out of range", position)
        length = len(tokens[i].source)
        if not 0 <= position.offset <= length:
            raise InvalidPositionError("Offset out of token range", position)
        if position.offset == 0:
            return Resolved(gap=i)
        if position.offset == length:
            return Resolved(gap=i + 1)
        return Resolved(token_index=i, offset=position.offset)

    if not 0 <= i < n:
        raise InvalidPositionError("Token index out of range", position)
    if not isinstance(tokens[i], OutputToken):
        raise InvalidPositionError("Chip boundary on a non-placeholder token", position)
    if position.kind is PositionKind.BEFORE_CHIP:
        return Resolved(gap=i)
    return Resolved(gap=i + 1)


def gap_position(tokens: Sequence[Token], gap: int) -> BufferPosition:
    """
    Каноническая позиция для границы перед токеном gap.

    Предпочтение: конец предыдущего литерала, затем граница чипа,
    затем начало следующего токена. Скрытые директивы курсор не адресует.
    """
    n = len(tokens)
    if gap > 0:
        prev = tokens[gap - 1]
        if isinstance(prev, LiteralToken):
            return BufferPosition.at(gap - 1, len(prev.text))
        if isinstance(prev, OutputToken):
            return BufferPosition.after_chip(gap - 1)
    if gap < n:
        if isinstance(tokens[gap], OutputToken):
            return BufferPosition.before_chip(gap)
        return BufferPosition.at(gap, 0)
    return BufferPosition.at(n, 0)


def position_for_offset(tokens: Sequence[Token], offset: int, *, atomic_chips: bool = True) -> BufferPosition:
    """
    Переводит абсолютное смещение в исходном тексте в позицию курсора.

    При atomic_chips смещение внутри плейсхолдера переносится на его
    ближайшую границу (живой режим); иначе остаётся внутри (сырой режим).

    Raises:
        InvalidPositionError: Если смещение вне текста.
    """
    offsets = token_offsets(tokens)
    if not 0 <= offset <= offsets[-1]:
        raise InvalidPositionError(f"Offset {offset} outside document of length {offsets[-1]}")
    for i, token in enumerate(tokens):
        start, end = offsets[i], offsets[i + 1]
        if offset == start:
            return gap_position(tokens, i)
        if start < offset < end:
            if atomic_chips and isinstance(token, OutputToken):
                nearest = i if offset - start <= end - offset else i + 1
                return gap_position(tokens, nearest)
            return BufferPosition.at(i, offset - start)
    return gap_position(tokens, len(tokens))


__all__ = [
    "PositionKind",
    "BufferPosition",
    "Resolved",
    "Document",
    "resolve",
    "gap_position",
    "position_for_offset",
]
