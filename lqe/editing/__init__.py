"""
Редактирование документа: намерения, атомарный контроллер,
вставка переменных и восстановление исходного текста из живого вида.
"""

from __future__ import annotations

from .controller import AtomicEditController, PickerCallback, PickerState, apply_edit
from .insertion import VariableCatalog, VariableDescriptor, VariableInsertionService, insert_variable
from .intents import EditIntent, EditOutcome, IntentKind
from .reconciler import reconcile

__all__ = [
    "AtomicEditController",
    "PickerCallback",
    "PickerState",
    "apply_edit",
    "VariableCatalog",
    "VariableDescriptor",
    "VariableInsertionService",
    "insert_variable",
    "EditIntent",
    "EditOutcome",
    "IntentKind",
    "reconcile",
]
