"""
Дерево отображения.

Узлы хранятся в «арене» (списке) и адресуются индексами; у каждого узла
есть список дочерних индексов и индекс родителя. Циклических ссылок
между объектами нет, дерево легко копировать и сравнивать.

Разметка (to_markup / from_markup) — то, что хост кладёт
в contenteditable-поверхность и получает из неё обратно.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional

from ..config import CHIP_CLASS, MARKER_CLASS, NBSP, SPACER_CLASS
from ..errors import ChipEditError, ContractError
from ..template.tokens import output_expression


class NodeKind(enum.Enum):
    ROOT = "root"
    TEXT = "text"        # редактируемый текст/разметка
    CHIP = "chip"        # атомарный плейсхолдер
    MARKER = "marker"    # скрытая директива
    SPACER = "spacer"    # нередактируемый пробел после чипа


@dataclass
class DisplayNode:
    kind: NodeKind
    text: str = ""
    token_index: Optional[int] = None
    label: Optional[str] = None
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class MarkupClasses:
    """CSS-классы обёрток живого режима."""
    chip: str = CHIP_CLASS
    marker: str = MARKER_CLASS
    spacer: str = SPACER_CLASS


class DisplayTree:
    """
    Арена узлов отображения с корнем в индексе 0.

    Удалённые узлы остаются в арене (индексы стабильны), но отцепляются
    от родителя и больше не участвуют в обходе.
    """

    ROOT = 0

    def __init__(self, classes: Optional[MarkupClasses] = None):
        self.nodes: List[DisplayNode] = [DisplayNode(NodeKind.ROOT)]
        self.classes = classes or MarkupClasses()

    # --- построение -----------------------------------------------------

    def append(self, node: DisplayNode, parent: int = ROOT) -> int:
        """Добавляет узел последним ребенком parent и возвращает его индекс."""
        self._require_attached(parent)
        node.parent = parent
        self.nodes.append(node)
        idx = len(self.nodes) - 1
        self.nodes[parent].children.append(idx)
        return idx

    def insert_after(self, sibling: int, node: DisplayNode) -> int:
        """Вставляет узел сразу после sibling у того же родителя."""
        parent = self._parent_of(sibling)
        node.parent = parent
        self.nodes.append(node)
        idx = len(self.nodes) - 1
        siblings = self.nodes[parent].children
        siblings.insert(siblings.index(sibling) + 1, idx)
        return idx

    def insert_before(self, sibling: int, node: DisplayNode) -> int:
        """Вставляет узел сразу перед sibling у того же родителя."""
        parent = self._parent_of(sibling)
        node.parent = parent
        self.nodes.append(node)
        idx = len(self.nodes) - 1
        siblings = self.nodes[parent].children
        siblings.insert(siblings.index(sibling), idx)
        return idx

    # --- мутации хоста --------------------------------------------------

    def remove(self, idx: int) -> None:
        """Отцепляет узел (целиком, вместе с потомками)."""
        parent = self._parent_of(idx)
        self.nodes[parent].children.remove(idx)
        self.nodes[idx].parent = None

    def move_after(self, idx: int, sibling: int) -> None:
        """Переставляет узел idx сразу после sibling."""
        if idx == sibling:
            return
        node = self.nodes[idx]
        self.remove(idx)
        parent = self._parent_of(sibling)
        node.parent = parent
        siblings = self.nodes[parent].children
        siblings.insert(siblings.index(sibling) + 1, idx)

    def set_text(self, idx: int, text: str) -> None:
        """
        Заменяет текст узла.

        Raises:
            ChipEditError: Для чипов, их текст никогда не редактируется.
            ContractError: Для служебных узлов (маркер, пробел, корень).
        """
        node = self.nodes[idx]
        if node.kind is NodeKind.CHIP:
            raise ChipEditError(f"Chip node {idx} is atomic and cannot be edited")
        if node.kind is not NodeKind.TEXT:
            raise ContractError(f"Node {idx} of kind {node.kind.value} has no editable text")
        node.text = text

    # --- обход ----------------------------------------------------------

    def children(self, idx: int = ROOT) -> List[int]:
        return list(self.nodes[idx].children)

    def walk(self, idx: int = ROOT) -> Iterator[int]:
        """Обход в глубину (прямой порядок), корень не включается."""
        for child in self.nodes[idx].children:
            yield child
            yield from self.walk(child)

    def leaves(self) -> Iterator[DisplayNode]:
        for idx in self.walk():
            node = self.nodes[idx]
            if not node.children:
                yield node

    def find_chip(self, token_index: int) -> Optional[int]:
        for idx in self.walk():
            node = self.nodes[idx]
            if node.kind is NodeKind.CHIP and node.token_index == token_index:
                return idx
        return None

    def chips(self) -> List[DisplayNode]:
        return [n for n in self.leaves() if n.kind is NodeKind.CHIP]

    def markers(self) -> List[DisplayNode]:
        return [n for n in self.leaves() if n.kind is NodeKind.MARKER]

    def visible_text(self) -> str:
        """Текст, который видит пользователь (маркеры скрыты, у чипов — подпись)."""
        parts: List[str] = []
        for node in self.leaves():
            if node.kind is NodeKind.MARKER:
                continue
            parts.append(node.label if node.kind is NodeKind.CHIP and node.label is not None else node.text)
        return "".join(parts)

    def structure(self) -> List[tuple]:
        """
        Сравнимое структурное представление (без индексов арены).

        Номер токена учитывается только у чипов и маркеров: только они
        переносят его через разметку.
        """
        return [
            (n.kind, n.text, n.token_index if n.kind in _ANCHORED else None, n.label)
            for n in self.leaves()
        ]

    def copy(self) -> DisplayTree:
        clone = DisplayTree(self.classes)
        clone.nodes = [replace(n, children=list(n.children)) for n in self.nodes]
        return clone

    # --- разметка -------------------------------------------------------

    def to_markup(self) -> str:
        """Сериализует дерево в разметку для contenteditable-поверхности."""
        parts: List[str] = []
        for node in self.leaves():
            token_attr = "" if node.token_index is None else f' data-token="{node.token_index}"'
            if node.kind is NodeKind.TEXT:
                parts.append(node.text)
            elif node.kind is NodeKind.CHIP:
                parts.append(
                    f'<span class="{self.classes.chip}"{token_attr} contenteditable="false">{node.text}</span>'
                )
            elif node.kind is NodeKind.MARKER:
                parts.append(f'<span class="{self.classes.marker}"{token_attr} hidden>{node.text}</span>')
            elif node.kind is NodeKind.SPACER:
                text = "&nbsp;" if node.text == NBSP else node.text
                parts.append(f'<span class="{self.classes.spacer}" contenteditable="false">{text}</span>')
        return "".join(parts)

    @classmethod
    def from_markup(cls, markup: str, classes: Optional[MarkupClasses] = None) -> DisplayTree:
        """
        Разбирает разметку, полученную от хоста, обратно в дерево.

        Распознаются только собственные обёртки (чип, маркер, пробел);
        всё остальное — текстовые узлы как есть.
        """
        tree = cls(classes)
        pattern = _wrapper_pattern(tree.classes)
        pos = 0
        for m in pattern.finditer(markup):
            if m.start() > pos:
                tree.append(DisplayNode(NodeKind.TEXT, text=markup[pos:m.start()]))
            pos = m.end()
            cls_name, attrs, inner = m.group("cls"), m.group("attrs"), m.group("inner")
            token_match = _DATA_TOKEN.search(attrs)
            token_index = int(token_match.group(1)) if token_match else None
            if cls_name == tree.classes.chip:
                tree.append(DisplayNode(NodeKind.CHIP, text=inner, token_index=token_index,
                                        label=output_expression(inner)))
            elif cls_name == tree.classes.marker:
                tree.append(DisplayNode(NodeKind.MARKER, text=inner, token_index=token_index))
            else:
                tree.append(DisplayNode(NodeKind.SPACER, text=NBSP if inner == "&nbsp;" else inner))
        if pos < len(markup):
            tree.append(DisplayNode(NodeKind.TEXT, text=markup[pos:]))
        return tree

    # --- внутреннее -----------------------------------------------------

    def _parent_of(self, idx: int) -> int:
        parent = self.nodes[idx].parent
        if parent is None:
            raise ContractError(f"Node {idx} is not attached to the tree")
        return parent

    def _require_attached(self, idx: int) -> None:
        if idx != self.ROOT and self.nodes[idx].parent is None:
            raise ContractError(f"Node {idx} is not attached to the tree")


_ANCHORED = (NodeKind.CHIP, NodeKind.MARKER)

_DATA_TOKEN = re.compile(r'data-token="(\d+)"')


def _wrapper_pattern(classes: MarkupClasses) -> re.Pattern:
    names = "|".join(re.escape(c) for c in (classes.chip, classes.marker, classes.spacer))
    return re.compile(
        rf'<span class="(?P<cls>{names})"(?P<attrs>[^>]*)>(?P<inner>.*?)</span>',
        re.DOTALL,
    )


__all__ = ["NodeKind", "DisplayNode", "MarkupClasses", "DisplayTree"]
