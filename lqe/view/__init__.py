"""
Представления документа: дерево отображения, рендерер и очистка разметки.
"""

from __future__ import annotations

from .cleaner import clean
from .renderer import ViewMode, render
from .tree import DisplayNode, DisplayTree, MarkupClasses, NodeKind

__all__ = [
    "clean",
    "ViewMode",
    "render",
    "DisplayNode",
    "DisplayTree",
    "MarkupClasses",
    "NodeKind",
]
