"""
Лексические типы шаблона.

Документ — упорядоченная последовательность токенов трёх видов:
обычный текст, плейсхолдер вывода {{ ... }} и директива {% ... %}.
Конкатенация исходного текста всех токенов в порядке следования
в точности воспроизводит исходную строку.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Sequence, Union

OUTPUT_START = "{{"
OUTPUT_END = "}}"
LOGIC_START = "{%"
LOGIC_END = "%}"

# Парные теги Liquid. Всё остальное (else, when, assign, break, ...) — standalone.
DEFAULT_OPENING_TAGS: FrozenSet[str] = frozenset({
    "if", "unless", "case", "for", "capture",
    "tablerow", "comment", "raw",
})
DEFAULT_CLOSING_TAGS: FrozenSet[str] = frozenset({
    "endif", "endunless", "endcase", "endfor", "endcapture",
    "endtablerow", "endcomment", "endraw",
})


class DirectiveRole(enum.Enum):
    """Роль директивы в структуре шаблона."""
    OPENING = "opening"
    CLOSING = "closing"
    STANDALONE = "standalone"


@dataclass(frozen=True)
class LiteralToken:
    """
    Обычный текст или разметка.

    Свободно редактируется в обоих режимах.
    """
    text: str

    @property
    def source(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"LiteralToken({self.text!r})"


@dataclass(frozen=True)
class OutputToken:
    """
    Плейсхолдер вывода {{ expression }}.

    raw_span хранит точную исходную подстроку вместе с пробелами,
    expression — очищенное выражение (используется как подпись чипа).
    """
    expression: str
    raw_span: str

    @property
    def source(self) -> str:
        return self.raw_span

    @staticmethod
    def for_expression(expression: str) -> OutputToken:
        """Создает плейсхолдер в каноническом виде: {{ expression }}."""
        return OutputToken(expression=expression, raw_span=f"{OUTPUT_START} {expression} {OUTPUT_END}")

    def __repr__(self) -> str:
        return f"OutputToken({self.expression!r})"


@dataclass(frozen=True)
class LogicToken:
    """
    Директива {% ... %}.

    Никогда не вычисляется: хранится как непрозрачный текст вместе с ролью.
    """
    raw_span: str
    role: DirectiveRole

    @property
    def source(self) -> str:
        return self.raw_span

    @property
    def tag(self) -> str:
        return directive_tag(self.raw_span)

    def __repr__(self) -> str:
        return f"LogicToken({self.raw_span!r}, {self.role.name})"


Token = Union[LiteralToken, OutputToken, LogicToken]


def _strip_delimiters(span: str, start: str, end: str) -> str:
    inner = span[len(start):len(span) - len(end)]
    # Управление пробелами в Liquid: {{- ... -}}, {%- ... -%}
    inner = inner.strip()
    if inner.startswith("-"):
        inner = inner[1:]
    if inner.endswith("-"):
        inner = inner[:-1]
    return inner.strip()


def output_expression(raw_span: str) -> str:
    """Извлекает выражение из {{ ... }} без пробелов и дефисов управления."""
    return _strip_delimiters(raw_span, OUTPUT_START, OUTPUT_END)


def directive_tag(raw_span: str) -> str:
    """Возвращает имя тега директивы (первое слово), например 'if' для {% if a %}."""
    body = _strip_delimiters(raw_span, LOGIC_START, LOGIC_END)
    parts = body.split(None, 1)
    return parts[0] if parts else ""


def classify_directive(
    raw_span: str,
    *,
    opening: Iterable[str] = DEFAULT_OPENING_TAGS,
    closing: Iterable[str] = DEFAULT_CLOSING_TAGS,
) -> DirectiveRole:
    """
    Определяет роль директивы по ключевому слову.

    Неизвестные теги считаются standalone.
    """
    tag = directive_tag(raw_span)
    if tag in opening:
        return DirectiveRole.OPENING
    if tag in closing:
        return DirectiveRole.CLOSING
    return DirectiveRole.STANDALONE


def serialize(tokens: Iterable[Token]) -> str:
    """Собирает исходный текст из последовательности токенов."""
    return "".join(t.source for t in tokens)


def token_offsets(tokens: Sequence[Token]) -> List[int]:
    """
    Абсолютные смещения начала каждого токена в исходном тексте.

    Последний элемент — длина всего текста, т.е. результат имеет длину len(tokens) + 1.
    """
    offsets = [0]
    for t in tokens:
        offsets.append(offsets[-1] + len(t.source))
    return offsets


__all__ = [
    "OUTPUT_START",
    "OUTPUT_END",
    "LOGIC_START",
    "LOGIC_END",
    "DEFAULT_OPENING_TAGS",
    "DEFAULT_CLOSING_TAGS",
    "DirectiveRole",
    "LiteralToken",
    "OutputToken",
    "LogicToken",
    "Token",
    "output_expression",
    "directive_tag",
    "classify_directive",
    "serialize",
    "token_offsets",
]
