"""
Рендерер токенов в дерево отображения.

RAW: каждый токен — редактируемый текстовый узел, директивы и
плейсхолдеры видны как обычный текст.
LIVE: плейсхолдеры — атомарные чипы, директивы — скрытые маркеры.

Рендеринг чистый и детерминированный: одинаковые токены и режим дают
структурно одинаковое дерево.
"""

from __future__ import annotations

import enum
from typing import Optional, Sequence

from ..config import NBSP
from ..template.tokens import LiteralToken, LogicToken, OutputToken, Token
from .tree import DisplayNode, DisplayTree, MarkupClasses, NodeKind


class ViewMode(enum.Enum):
    RAW = "raw"
    LIVE = "live"


def render(
    tokens: Sequence[Token],
    mode: ViewMode,
    *,
    classes: Optional[MarkupClasses] = None,
    spacer: str = NBSP,
) -> DisplayTree:
    """
    Строит дерево отображения для последовательности токенов.

    Args:
        tokens: Токены документа
        mode: Режим отображения
        classes: CSS-классы обёрток живого режима
        spacer: Пробельная единица, которая после чипа показывается как SPACER

    Returns:
        Новое дерево; исходные токены не изменяются
    """
    tree = DisplayTree(classes)

    if mode is ViewMode.RAW:
        for i, token in enumerate(tokens):
            tree.append(DisplayNode(NodeKind.TEXT, text=token.source, token_index=i))
        return tree

    for i, token in enumerate(tokens):
        if isinstance(token, OutputToken):
            tree.append(DisplayNode(NodeKind.CHIP, text=token.raw_span, token_index=i, label=token.expression))
        elif isinstance(token, LogicToken):
            tree.append(DisplayNode(NodeKind.MARKER, text=token.raw_span, token_index=i))
        elif is_spacer(tokens, i, spacer):
            tree.append(DisplayNode(NodeKind.SPACER, text=token.text, token_index=i))
        else:
            tree.append(DisplayNode(NodeKind.TEXT, text=token.text, token_index=i))
    return tree


def is_spacer(tokens: Sequence[Token], i: int, spacer: str) -> bool:
    """Литерал из одной пробельной единицы сразу после плейсхолдера."""
    token = tokens[i]
    return (
        isinstance(token, LiteralToken)
        and token.text == spacer
        and i > 0
        and isinstance(tokens[i - 1], OutputToken)
    )


__all__ = ["ViewMode", "render", "is_spacer"]
