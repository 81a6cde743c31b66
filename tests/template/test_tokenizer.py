"""
Тесты лексера Liquid-шаблонов.

Проверяет:
- разбиение на текст, плейсхолдеры и директивы
- определение ролей директив
- поведение на незакрытых и «вложенных» разделителях
- без потерь: serialize(tokenize(s)) == s
"""

import pytest

from lqe.template import (
    DirectiveRole,
    LiteralToken,
    LogicToken,
    OutputToken,
    TemplateLexer,
    classify_directive,
    directive_tag,
    serialize,
    token_offsets,
    tokenize,
)


class TestTemplateLexer:
    """Базовая токенизация."""

    def test_empty_template(self):
        assert tokenize("") == []

    def test_plain_text(self):
        assert tokenize("Hello, world!") == [LiteralToken("Hello, world!")]

    def test_placeholder_between_text(self):
        tokens = tokenize("Hello {{ name }}!")

        assert tokens == [
            LiteralToken("Hello "),
            OutputToken(expression="name", raw_span="{{ name }}"),
            LiteralToken("!"),
        ]

    def test_placeholder_expression_is_trimmed(self):
        tokens = tokenize("{{-   product.price | money -}}")

        assert len(tokens) == 1
        assert tokens[0].expression == "product.price | money"
        assert tokens[0].raw_span == "{{-   product.price | money -}}"

    def test_directive_block(self):
        tokens = tokenize("{% if a %}X{% endif %}")

        assert tokens == [
            LogicToken("{% if a %}", DirectiveRole.OPENING),
            LiteralToken("X"),
            LogicToken("{% endif %}", DirectiveRole.CLOSING),
        ]

    def test_standalone_directives(self):
        tokens = tokenize("{% if a %}1{% else %}2{% assign x = 1 %}{% endif %}")
        roles = [t.role for t in tokens if isinstance(t, LogicToken)]

        assert roles == [
            DirectiveRole.OPENING,
            DirectiveRole.STANDALONE,
            DirectiveRole.STANDALONE,
            DirectiveRole.CLOSING,
        ]

    def test_whitespace_control_directive(self):
        tokens = tokenize("{%- for item in items -%}{%- endfor -%}")

        assert [t.role for t in tokens] == [DirectiveRole.OPENING, DirectiveRole.CLOSING]
        assert tokens[0].tag == "for"

    def test_custom_tag_sets(self):
        lexer = TemplateLexer("{% form %}x{% endform %}", opening_tags={"form"}, closing_tags={"endform"})
        tokens = lexer.tokenize()

        assert tokens[0].role == DirectiveRole.OPENING
        assert tokens[2].role == DirectiveRole.CLOSING

    def test_adjacent_tags_produce_no_empty_literals(self):
        tokens = tokenize("{{ a }}{{ b }}{% if c %}")

        assert [type(t) for t in tokens] == [OutputToken, OutputToken, LogicToken]


class TestMalformedInput:
    """Незакрытые разделители — обычный текст, ошибок нет."""

    def test_unclosed_placeholder(self):
        assert tokenize("a {{ b") == [LiteralToken("a {{ b")]

    def test_unclosed_opener_does_not_hide_later_directive(self):
        tokens = tokenize("{{ x {% if a %}")

        assert tokens == [
            LiteralToken("{{ x "),
            LogicToken("{% if a %}", DirectiveRole.OPENING),
        ]

    def test_delimiters_do_not_nest(self):
        tokens = tokenize("{{ a {{ b }} }}")

        assert tokens[0] == OutputToken(expression="a {{ b", raw_span="{{ a {{ b }}")
        assert tokens[1] == LiteralToken(" }}")

    def test_overlapping_closer_is_not_a_directive(self):
        assert tokenize("{%}") == [LiteralToken("{%}")]

    def test_lone_braces(self):
        assert tokenize("{ } {x} }}") == [LiteralToken("{ } {x} }}")]


@pytest.mark.parametrize("raw", [
    "",
    "plain",
    "Hello {{ name }}!",
    "{% if a %}\n  {{ a }}\n{% else %}\n  none\n{% endif %}\n",
    "{{ unclosed",
    "{% unclosed",
    "}} %} stray closers {{",
    "<p>{{ a }} </p>{%- comment -%}x{%- endcomment -%}",
    "{{}}{%%}",
])
def test_serialize_is_lossless(raw):
    assert serialize(tokenize(raw)) == raw


def test_token_offsets():
    tokens = tokenize("ab{{ c }}d")

    assert token_offsets(tokens) == [0, 2, 9, 10]


def test_classify_directive_defaults():
    assert classify_directive("{% unless x %}") == DirectiveRole.OPENING
    assert classify_directive("{% endcase %}") == DirectiveRole.CLOSING
    assert classify_directive("{% when 1 %}") == DirectiveRole.STANDALONE
    assert classify_directive("{%  %}") == DirectiveRole.STANDALONE


def test_directive_tag():
    assert directive_tag("{%- capture greeting -%}") == "capture"
    assert directive_tag("{% %}") == ""
