"""
Очистка разметки живого режима обратно в канонический исходный текст.

Шаги:
  • &nbsp; и U+00A0 → обычный пробел;
  • обёртки чипов, маркеров и пробелов снимаются, внутренний текст остаётся;
  • пустые <span>-обёртки (в том числе вложенные) удаляются;
  • серии пробелов схлопываются (переводы строк сохраняются, если нужно);
  • пробелы вплотную к тегам разметки удаляются.

Текст плейсхолдеров и директив пробельными шагами не трогается.
Функция идемпотентна: clean(clean(x)) == clean(x).
"""

from __future__ import annotations

import re
from typing import Optional, Union

from ..config import NBSP
from ..template.lexer import tokenize
from ..template.tokens import LiteralToken
from .tree import DisplayTree, MarkupClasses

_EMPTY_SPAN = re.compile(r"<span\b[^>]*>\s*</span\s*>")
_WS_RUN = re.compile(r"\s+")
_TAG_PADDING = re.compile(r"\s*(<[^>]+>)\s*")
_TAG_PADDING_H = re.compile(r"[^\S\n]*(<[^>]+>)[^\S\n]*")


def clean(
    markup: Union[str, DisplayTree],
    *,
    keep_line_breaks: bool = True,
    classes: Optional[MarkupClasses] = None,
) -> str:
    """
    Приводит разметку (или дерево отображения) к каноническому исходному тексту.

    Args:
        markup: Разметка от хоста или дерево отображения
        keep_line_breaks: Сохранять переводы строк при схлопывании пробелов
        classes: CSS-классы обёрток (по умолчанию — классы дерева или стандартные)

    Returns:
        Очищенный исходный текст
    """
    if isinstance(markup, DisplayTree):
        classes = classes or markup.classes
        markup = markup.to_markup()
    classes = classes or MarkupClasses()
    unwrapper = _unwrapper(classes)

    # Схлопывание пробелов может «починить» тег обёртки (<span  class=...>),
    # поэтому проходы повторяются до неподвижной точки
    text = markup
    while True:
        cleaned = _clean_pass(text, unwrapper, keep_line_breaks)
        if cleaned == text:
            return cleaned
        text = cleaned


def _clean_pass(text: str, unwrapper: re.Pattern, keep_line_breaks: bool) -> str:
    text = text.replace("&nbsp;", " ").replace(NBSP, " ")
    text = _until_stable(unwrapper.sub, r"\g<inner>", text)
    text = _until_stable(_EMPTY_SPAN.sub, "", text)

    # Пробелы нормализуем только в литералах: {{ ... }} и {% ... %} остаются дословно
    parts = []
    for token in tokenize(text):
        if isinstance(token, LiteralToken):
            parts.append(_clean_literal(token.text, keep_line_breaks))
        else:
            parts.append(token.source)
    return "".join(parts)


def _clean_literal(text: str, keep_line_breaks: bool) -> str:
    text = _WS_RUN.sub(lambda m: _collapse_run(m.group(0), keep_line_breaks), text)
    padding = _TAG_PADDING_H if keep_line_breaks else _TAG_PADDING
    return padding.sub(r"\1", text)


def _collapse_run(run: str, keep_line_breaks: bool) -> str:
    if keep_line_breaks:
        breaks = run.count("\n") if "\n" in run else run.count("\r")
        if breaks:
            return "\n" * breaks
    return " "


def _unwrapper(classes: MarkupClasses) -> re.Pattern:
    names = "|".join(re.escape(c) for c in (classes.chip, classes.marker, classes.spacer))
    return re.compile(rf'<span\s+class\s*=\s*"(?:{names})"[^>]*>(?P<inner>.*?)</span\s*>', re.DOTALL)


def _until_stable(sub, repl: str, text: str) -> str:
    while True:
        new_text = sub(repl, text)
        if new_text == text:
            return text
        text = new_text


__all__ = ["clean"]
