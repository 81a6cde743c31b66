"""
Лексический анализатор Liquid-шаблонов.

Разбивает исходный текст на последовательность токенов: текст,
плейсхолдеры {{ ... }} и директивы {% ... %}. Лексер тотален:
незакрытый разделитель считается обычным текстом, ошибок не бывает.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .tokens import (
    DEFAULT_CLOSING_TAGS,
    DEFAULT_OPENING_TAGS,
    LOGIC_END,
    LOGIC_START,
    OUTPUT_END,
    OUTPUT_START,
    LiteralToken,
    LogicToken,
    OutputToken,
    Token,
    classify_directive,
    output_expression,
)


class TemplateLexer:
    """
    Сканер исходного текста шаблона.

    Состояния простые: либо мы в тексте, либо нашли открывающий
    разделитель и ищем первый соответствующий закрывающий.
    Разделители не вкладываются и не экранируются.
    """

    # Открывающий разделитель -> закрывающий
    _DELIMITERS = {
        OUTPUT_START: OUTPUT_END,
        LOGIC_START: LOGIC_END,
    }

    def __init__(
        self,
        text: str,
        *,
        opening_tags: Optional[Iterable[str]] = None,
        closing_tags: Optional[Iterable[str]] = None,
    ):
        self.text = text
        self.position = 0
        self.length = len(text)
        self.opening_tags = frozenset(opening_tags if opening_tags is not None else DEFAULT_OPENING_TAGS)
        self.closing_tags = frozenset(closing_tags if closing_tags is not None else DEFAULT_CLOSING_TAGS)
        self._pending_text: List[str] = []

    def tokenize(self) -> List[Token]:
        """
        Токенизирует весь исходный текст и возвращает список токенов.

        Соседние куски текста склеиваются в один LiteralToken,
        пустые литералы не создаются.
        """
        tokens: List[Token] = []

        while self.position < self.length:
            opener = self._find_next_opener()
            if opener is None:
                self._pending_text.append(self.text[self.position:])
                self.position = self.length
                break

            start, open_delim = opener
            if start > self.position:
                self._pending_text.append(self.text[self.position:start])

            close_delim = self._DELIMITERS[open_delim]
            close_at = self.text.find(close_delim, start + len(open_delim))
            if close_at < 0:
                # Незакрытый разделитель: сам разделитель — текст, сканируем дальше
                self._pending_text.append(open_delim)
                self.position = start + len(open_delim)
                continue

            end = close_at + len(close_delim)
            self._flush_text(tokens)
            tokens.append(self._make_tag_token(self.text[start:end], open_delim))
            self.position = end

        self._flush_text(tokens)
        return tokens

    def _find_next_opener(self) -> Optional[tuple[int, str]]:
        """
        Находит ближайший открывающий разделитель ({{ или {%) от текущей позиции.
        """
        pos = self.text.find("{", self.position)
        while 0 <= pos < self.length - 1:
            pair = self.text[pos:pos + 2]
            if pair in self._DELIMITERS:
                return pos, pair
            pos = self.text.find("{", pos + 1)
        return None

    def _make_tag_token(self, span: str, open_delim: str) -> Token:
        if open_delim == OUTPUT_START:
            return OutputToken(expression=output_expression(span), raw_span=span)
        role = classify_directive(span, opening=self.opening_tags, closing=self.closing_tags)
        return LogicToken(raw_span=span, role=role)

    def _flush_text(self, tokens: List[Token]) -> None:
        if self._pending_text:
            text = "".join(self._pending_text)
            self._pending_text = []
            if text:
                tokens.append(LiteralToken(text))


def tokenize(
    raw: str,
    *,
    opening_tags: Optional[Iterable[str]] = None,
    closing_tags: Optional[Iterable[str]] = None,
) -> List[Token]:
    """
    Удобная функция для токенизации шаблона.

    Args:
        raw: Исходный текст шаблона
        opening_tags: Теги, открывающие блок (по умолчанию стандартные теги Liquid)
        closing_tags: Теги, закрывающие блок

    Returns:
        Список токенов; serialize(tokenize(raw)) == raw
    """
    lexer = TemplateLexer(raw, opening_tags=opening_tags, closing_tags=closing_tags)
    return lexer.tokenize()


__all__ = ["TemplateLexer", "tokenize"]
