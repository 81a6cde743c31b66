"""
Токенная модель Liquid-шаблонов: типы токенов и лексер.
"""

from __future__ import annotations

from .lexer import TemplateLexer, tokenize
from .tokens import (
    DirectiveRole,
    LiteralToken,
    LogicToken,
    OutputToken,
    Token,
    classify_directive,
    directive_tag,
    serialize,
    token_offsets,
)

__all__ = [
    "TemplateLexer",
    "tokenize",
    "DirectiveRole",
    "LiteralToken",
    "LogicToken",
    "OutputToken",
    "Token",
    "classify_directive",
    "directive_tag",
    "serialize",
    "token_offsets",
]
