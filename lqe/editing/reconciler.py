"""
Восстановление исходного текста из отредактированного дерева живого режима.

Порядок чипов и текста в дереве авторитетен. Директивы в живом режиме
не имеют видимой привязки, поэтому они возвращаются в текст эвристикой
по границам строк:

  • opening  — на ближайшую границу строки не раньше позиции отслеживания;
  • closing  — на ближайшую границу строки не позже неё;
  • standalone — ровно в позицию отслеживания.

Позиция отслеживания — место маркера директивы в дереве, а если маркер
пропал — её исходное смещение в тексте без директив. Директивы
обрабатываются в исходном порядке с монотонным курсором сканирования,
так что их взаимный порядок сохраняется.

Директива никогда не вставляется внутрь {{ ... }} или {% ... %} и сразу
после «{»: такая позиция сдвигается вперёд (opening, standalone) или
назад (closing) до ближайшего безопасного места. Иначе при повторной
токенизации директива растворилась бы в соседнем токене.

Это эвристика, а не точная инверсия рендеринга: при сильном изменении
структуры строк директивы могут сместиться, но ни одна не теряется.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..template.lexer import tokenize
from ..template.tokens import (
    LOGIC_START,
    OUTPUT_START,
    DirectiveRole,
    LiteralToken,
    LogicToken,
    OutputToken,
    Token,
    token_offsets,
)
from ..view.tree import DisplayNode, DisplayTree, NodeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    token: LogicToken
    tracking: int
    offset: int


def reconcile(edited_tree: DisplayTree, previous_tokens: Sequence[Token]) -> str:
    """
    Выводит новый исходный текст из отредактированного дерева.

    Args:
        edited_tree: Дерево живого режима после правок хоста
        previous_tokens: Токены документа, из которых дерево было отрендерено

    Returns:
        Новый исходный текст; все директивы previous_tokens присутствуют в нём дословно
    """
    content, anchors = _collect_content(edited_tree, previous_tokens)
    placements = place_directives(content, previous_tokens, anchors)

    parts: List[str] = []
    pos = 0
    for p in placements:
        parts.append(content[pos:p.offset])
        parts.append(p.token.raw_span)
        pos = p.offset
    parts.append(content[pos:])
    return "".join(parts)


def place_directives(
    content: str,
    previous_tokens: Sequence[Token],
    anchors: Dict[int, int],
) -> List[Placement]:
    """
    Вычисляет позиции директив в тексте без директив.

    Args:
        content: Текст, собранный из дерева (без директив)
        previous_tokens: Исходные токены
        anchors: token_index директивы -> смещение её маркера в content

    Returns:
        Размещения в исходном порядке директив, смещения не убывают
    """
    placements: List[Placement] = []
    spans = template_spans(content)
    limit = _insertion_limit(content)
    scan = 0
    content_offset = 0

    for i, token in enumerate(previous_tokens):
        if not isinstance(token, LogicToken):
            content_offset += len(token.source)
            continue

        tracking = anchors.get(i, min(content_offset, len(content)))
        if token.role is DirectiveRole.OPENING:
            candidate = next_line_boundary(content, tracking)
        elif token.role is DirectiveRole.CLOSING:
            candidate = prev_line_boundary(content, tracking)
        else:
            candidate = tracking
        # Вставка не должна разрывать {{ ... }} или {% ... %} и склеиваться с соседним «{»
        candidate = _safe_offset(content, spans, limit, candidate, forward=token.role is not DirectiveRole.CLOSING)

        offset = max(candidate, scan)
        scan = offset
        logger.debug("Directive %r: tracking=%d placed=%d", token.raw_span, tracking, offset)
        placements.append(Placement(token=token, tracking=tracking, offset=offset))

    return placements


def is_line_boundary(text: str, pos: int) -> bool:
    """Граница строки: края текста, начало строки (после \\n) или её конец (на \\n)."""
    return pos == 0 or pos == len(text) or text[pos - 1] == "\n" or text[pos] == "\n"


def next_line_boundary(text: str, pos: int) -> int:
    if is_line_boundary(text, pos):
        return pos
    nl = text.find("\n", pos)
    return nl if nl >= 0 else len(text)


def prev_line_boundary(text: str, pos: int) -> int:
    if is_line_boundary(text, pos):
        return pos
    nl = text.rfind("\n", 0, pos)
    return nl + 1 if nl >= 0 else 0


def template_spans(content: str) -> List[Tuple[int, int]]:
    """Полуинтервалы [start, end) плейсхолдеров и директив в content."""
    tokens = tokenize(content)
    offsets = token_offsets(tokens)
    return [
        (offsets[i], offsets[i + 1])
        for i, t in enumerate(tokens)
        if not isinstance(t, LiteralToken)
    ]


def _insertion_limit(content: str) -> int:
    """
    Наибольшее смещение, куда директиву можно вставить без изменения разбора.

    Незакрытые «{{» и «{%» в тексте могут «поймать» закрывающий разделитель
    вставленной директивы, поэтому всё после первого из них запрещено.
    """
    limit = len(content)
    tokens = tokenize(content)
    offsets = token_offsets(tokens)
    for i, token in enumerate(tokens):
        if not isinstance(token, LiteralToken):
            continue
        for opener in (OUTPUT_START, LOGIC_START):
            at = token.text.find(opener)
            if at >= 0:
                limit = min(limit, offsets[i] + at)
    return limit


def _safe_offset(content: str, spans: Sequence[Tuple[int, int]], limit: int, pos: int, *, forward: bool) -> int:
    """
    Ближайшее безопасное смещение в заданном направлении.

    Если вперёд безопасного места нет, ищем назад; смещение 0 безопасно всегда.
    """
    start = min(pos, limit)
    if forward:
        p = start
        while p <= limit:
            shifted = _unsafe_shift(content, spans, p, forward=True)
            if shifted is None:
                return p
            p = shifted
    p = start
    while True:
        shifted = _unsafe_shift(content, spans, p, forward=False)
        if shifted is None:
            return p
        p = shifted


def _unsafe_shift(content: str, spans: Sequence[Tuple[int, int]], p: int, *, forward: bool) -> Optional[int]:
    for start, end in spans:
        if start < p < end:
            return end if forward else start
    if p > 0 and content[p - 1] == "{":
        return p + 1 if forward else p - 1
    return None


def _collect_content(tree: DisplayTree, previous_tokens: Sequence[Token]) -> Tuple[str, Dict[int, int]]:
    """
    Собирает текст без директив и смещения уцелевших маркеров.

    Маркер без соответствующей исходной директивы (например, добавленный
    хостом) остаётся в тексте на своём месте как есть.
    """
    parts: List[str] = []
    length = 0
    anchors: Dict[int, int] = {}

    for node in tree.leaves():
        if node.kind is NodeKind.MARKER:
            ti = node.token_index
            if (
                ti is not None
                and 0 <= ti < len(previous_tokens)
                and isinstance(previous_tokens[ti], LogicToken)
                and ti not in anchors
            ):
                anchors[ti] = length
                continue
            text = node.text
        elif node.kind is NodeKind.CHIP:
            text = _chip_source(node, previous_tokens)
        else:
            text = node.text
        parts.append(text)
        length += len(text)

    return "".join(parts), anchors


def _chip_source(node: DisplayNode, previous_tokens: Sequence[Token]) -> str:
    ti = node.token_index
    if ti is not None and 0 <= ti < len(previous_tokens) and isinstance(previous_tokens[ti], OutputToken):
        return previous_tokens[ti].raw_span
    if node.text:
        return node.text
    return OutputToken.for_expression(node.label or "").raw_span


__all__ = [
    "Placement",
    "reconcile",
    "place_directives",
    "template_spans",
    "is_line_boundary",
    "next_line_boundary",
    "prev_line_boundary",
]
