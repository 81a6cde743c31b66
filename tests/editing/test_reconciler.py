"""
Тесты восстановления исходного текста из дерева живого режима.
"""

import logging
from collections import Counter

import pytest

from lqe.document import Document
from lqe.editing import reconcile
from lqe.editing.reconciler import is_line_boundary, next_line_boundary, prev_line_boundary, template_spans
from lqe.template.tokens import LogicToken
from lqe.view import DisplayNode, DisplayTree, NodeKind, ViewMode, render


def live(raw: str):
    tokens = Document.from_raw(raw).tokens
    return render(tokens, ViewMode.LIVE), tokens


def directives(raw: str) -> Counter:
    return Counter(t.raw_span for t in Document.from_raw(raw).tokens if isinstance(t, LogicToken))


@pytest.mark.parametrize("raw", [
    "{% if a %}X{% endif %}",
    "{% if a %}\nHello {{ name }}\n{% endif %}\n",
    "<ul>\n{% for p in products %}\n  <li>{{ p.title }}</li>\n{% endfor %}\n</ul>",
    "{% assign x = 1 %}{{ x }}",
    "no directives {{ at }} all",
    "",
])
def test_unedited_tree_reconciles_to_source(raw):
    tree, tokens = live(raw)

    assert reconcile(tree, tokens) == raw


def test_scenario_hidden_directives_survive_without_markers():
    tree, tokens = live("{% if a %}X{% endif %}")
    plain = DisplayTree.from_markup("X")

    assert reconcile(plain, tokens) == "{% if a %}X{% endif %}"
    assert reconcile(tree, tokens) == "{% if a %}X{% endif %}"


def test_removed_chip():
    tree, tokens = live("Hello {{ name }}!")
    tree.remove(tree.find_chip(1))

    assert reconcile(tree, tokens) == "Hello !"


def test_edited_text_keeps_block_around_it():
    raw = "{% if a %}\nHello {{ name }}\n{% endif %}"
    tree, tokens = live(raw)
    text_idx = tree.children()[1]
    tree.set_text(text_idx, "\nGood morning, ")

    assert reconcile(tree, tokens) == "{% if a %}\nGood morning, {{ name }}\n{% endif %}"


def test_moved_chip_follows_tree_order():
    tree, tokens = live("{{ a }} and {{ b }}")
    tree.move_after(tree.find_chip(0), tree.find_chip(2))

    assert reconcile(tree, tokens) == " and {{ b }}{{ a }}"


def test_mid_line_directives_move_to_line_boundaries():
    raw = "a {% if x %}b{% endif %} c"
    tree, tokens = live(raw)
    out = reconcile(tree, tokens)

    assert out == "a b c{% if x %}{% endif %}"
    assert directives(out) == directives(raw)


def test_directive_order_is_preserved():
    raw = "{% if a %}1{% else %}2{% endif %}"
    tree, tokens = live(raw)
    for marker_idx in [i for i in tree.children() if tree.nodes[i].kind is NodeKind.MARKER]:
        tree.remove(marker_idx)
    out = reconcile(tree, tokens)

    spans = [t.raw_span for t in Document.from_raw(out).tokens if isinstance(t, LogicToken)]
    assert spans == ["{% if a %}", "{% else %}", "{% endif %}"]


def test_all_content_deleted_keeps_directives():
    raw = "{% if a %}\nX\n{% endif %}"
    _tree, tokens = live(raw)

    assert reconcile(DisplayTree(), tokens) == "{% if a %}{% endif %}"


def test_chip_without_source_token():
    tree = DisplayTree()
    tree.append(DisplayNode(NodeKind.CHIP, label="user.name"))

    assert reconcile(tree, ()) == "{{ user.name }}"


def test_foreign_marker_is_kept_in_place():
    tree = DisplayTree.from_markup('a<span class="liquid-logic" hidden>{% break %}</span>b')

    assert reconcile(tree, Document.from_raw("ab").tokens) == "a{% break %}b"


def test_placements_are_logged(caplog):
    tree, tokens = live("{% if a %}X{% endif %}")
    with caplog.at_level(logging.DEBUG, logger="lqe.editing.reconciler"):
        reconcile(tree, tokens)

    assert "{% endif %}" in caplog.text


class TestLineBoundaries:

    def test_is_line_boundary(self):
        text = "ab\ncd"

        assert is_line_boundary(text, 0)
        assert is_line_boundary(text, 2)
        assert is_line_boundary(text, 3)
        assert is_line_boundary(text, 5)
        assert not is_line_boundary(text, 1)
        assert not is_line_boundary(text, 4)

    def test_next_and_prev(self):
        text = "ab\ncd"

        assert next_line_boundary(text, 1) == 2
        assert next_line_boundary(text, 4) == 5
        assert prev_line_boundary(text, 4) == 3
        assert prev_line_boundary(text, 1) == 0
        assert prev_line_boundary(text, 2) == 2


def text_tree(*texts: str) -> DisplayTree:
    tree = DisplayTree()
    for text in texts:
        tree.append(DisplayNode(NodeKind.TEXT, text=text))
    return tree


def without_markers(tree: DisplayTree) -> DisplayTree:
    for marker_idx in [i for i in tree.children() if tree.nodes[i].kind is NodeKind.MARKER]:
        tree.remove(marker_idx)
    return tree


class TestSafePlacement:

    def test_directive_skips_over_multiline_chip(self):
        raw = "a {% if x %}b {{\nname }} c{% endif %}"
        tree, tokens = live(raw)
        out = reconcile(tree, tokens)

        assert out == "a b {{\nname }}{% if x %} c{% endif %}"
        assert directives(out) == directives(raw)

    def test_fallback_offset_inside_chip_moves_past_it(self):
        tree = DisplayTree()
        tree.append(DisplayNode(NodeKind.CHIP, text="{{ name }}", label="name"))
        tokens = Document.from_raw("ab{% assign x = 1 %}cd").tokens

        out = reconcile(tree, tokens)

        assert out == "{{ name }}{% assign x = 1 %}"
        assert directives(out) == Counter({"{% assign x = 1 %}": 1})

    def test_closing_directive_moves_before_chip(self):
        tree = DisplayTree()
        tree.append(DisplayNode(NodeKind.CHIP, text="{{ name }}", label="name"))
        tokens = Document.from_raw("ab{% endif %}cd").tokens

        assert reconcile(tree, tokens) == "{% endif %}{{ name }}"

    def test_directive_is_not_glued_to_literal_brace(self):
        tokens = Document.from_raw("a{% assign x = 1 %}b").tokens
        out = reconcile(text_tree("{b"), tokens)

        assert out == "{b{% assign x = 1 %}"
        assert directives(out) == Counter({"{% assign x = 1 %}": 1})

    def test_directive_stays_before_unclosed_opener(self):
        tokens = Document.from_raw("a{% assign x = 1 %}b").tokens
        out = reconcile(text_tree("{{ oops b"), tokens)

        assert out == "{% assign x = 1 %}{{ oops b"
        assert directives(out) == Counter({"{% assign x = 1 %}": 1})

    def test_template_spans(self):
        assert template_spans("a{{ b }}c{% if d %}") == [(1, 8), (9, 19)]
        assert template_spans("plain {{ unclosed") == []


PRESERVATION_CASES = [
    "{% if a %}X{% endif %}",
    "a {% if x %}b {{\nname }} c{% endif %}",
    "{% if a %}\n{{ a\n }}{% else %}{{\nb }}\n{% endif %}",
    "x {% assign y = 1 %}{{ y }}{% if y %} {{ z }}{% endif %}",
    "{% for p in ps %}{{ p.title\n}}, {% endfor %}",
    "{ {% if a %}b{% endif %}",
    "{% capture c %}{{ a }}{{ b }}{% endcapture %}{% comment %}x{% endcomment %}",
]


@pytest.mark.parametrize("raw", PRESERVATION_CASES)
def test_directives_are_preserved_with_markers(raw):
    tree, tokens = live(raw)

    assert directives(reconcile(tree, tokens)) == directives(raw)


@pytest.mark.parametrize("raw", PRESERVATION_CASES)
def test_directives_are_preserved_without_markers(raw):
    tree, tokens = live(raw)
    out = reconcile(without_markers(tree), tokens)

    assert directives(out) == directives(raw)
    assert [t.raw_span for t in Document.from_raw(out).tokens if isinstance(t, LogicToken)] == [
        t.raw_span for t in tokens if isinstance(t, LogicToken)
    ]
