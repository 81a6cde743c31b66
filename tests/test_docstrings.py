"""
Тесты единообразия документации модулей.
"""

import importlib
import re

import pytest

import lqe

CYRILLIC = re.compile(r"[А-Яа-яЁё]")

MODULES = [
    "lqe",
    "lqe.config",
    "lqe.errors",
    "lqe.session",
    "lqe.document",
    "lqe.editing.reconciler",
    "lqe.view.cleaner",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_docstring_is_russian(name):
    module = importlib.import_module(name)

    assert module.__doc__ and CYRILLIC.search(module.__doc__)


@pytest.mark.parametrize("obj", [
    lqe.EditSession,
    lqe.EditSession.__init__,
    lqe.EditSession.toggle_mode,
    lqe.EditSession.absorb,
    lqe.EditorConfig,
    lqe.load_config,
    lqe.LQEUserError,
    lqe.ChipEditError,
])
def test_public_docstrings_are_russian(obj):
    assert obj.__doc__ and CYRILLIC.search(obj.__doc__)
