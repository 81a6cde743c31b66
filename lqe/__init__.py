"""
Ядро редактирования Liquid-шаблонов.

Шаблон редактируется как исходный текст или в живом режиме, где
плейсхолдеры — атомарные чипы, а директивы — скрытые маркеры.
"""

from __future__ import annotations

from .config import DEFAULT_CONFIG, EditorConfig, load_config
from .document import BufferPosition, Document, PositionKind
from .editing import (
    AtomicEditController,
    EditIntent,
    EditOutcome,
    IntentKind,
    VariableCatalog,
    VariableDescriptor,
    VariableInsertionService,
    apply_edit,
    insert_variable,
    reconcile,
)
from .errors import ChipEditError, ConfigError, ContractError, InvalidPositionError, LQEUserError
from .session import EditSession
from .template import DirectiveRole, LiteralToken, LogicToken, OutputToken, Token, serialize, tokenize
from .version import tool_version
from .view import DisplayNode, DisplayTree, NodeKind, ViewMode, clean, render

__version__ = tool_version()

__all__ = [
    "DEFAULT_CONFIG",
    "EditorConfig",
    "load_config",
    "BufferPosition",
    "Document",
    "PositionKind",
    "AtomicEditController",
    "EditIntent",
    "EditOutcome",
    "IntentKind",
    "VariableCatalog",
    "VariableDescriptor",
    "VariableInsertionService",
    "apply_edit",
    "insert_variable",
    "reconcile",
    "ChipEditError",
    "ConfigError",
    "ContractError",
    "InvalidPositionError",
    "LQEUserError",
    "EditSession",
    "DirectiveRole",
    "LiteralToken",
    "LogicToken",
    "OutputToken",
    "Token",
    "serialize",
    "tokenize",
    "DisplayNode",
    "DisplayTree",
    "NodeKind",
    "ViewMode",
    "clean",
    "render",
]
