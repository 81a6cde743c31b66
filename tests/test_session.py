import logging

import pytest

from lqe.config import NBSP, EditorConfig
from lqe.document import BufferPosition
from lqe.editing import EditIntent, VariableDescriptor
from lqe.errors import InvalidPositionError
from lqe.session import EditSession
from lqe.template.tokens import DirectiveRole
from lqe.view import NodeKind, ViewMode


class TestEditSession:

    def setup_method(self):
        self.changes = []
        self.picks = []

    def make(self, raw: str, **kwargs) -> EditSession:
        return EditSession(raw, on_change=self.changes.append, open_picker=self.picks.append, **kwargs)

    def test_starts_in_raw_mode_at_document_end(self):
        session = self.make("Hello {{ name }}!")

        assert session.mode is ViewMode.RAW
        assert session.cursor == BufferPosition.at(2, 1)
        assert [n.kind for n in session.tree.leaves()] == [NodeKind.TEXT] * 3
        assert session.markup == "Hello {{ name }}!"

    def test_toggle_to_live_renders_chips(self):
        session = self.make("Hello {{ name }}!")

        assert session.toggle_mode() is ViewMode.LIVE
        assert session.raw == "Hello {{ name }}!"
        assert len(session.tree.chips()) == 1
        assert session.cursor == BufferPosition.at(2, 1)
        assert session.character_count == len("Hello name!")
        assert self.changes == []

    def test_live_backspace_removes_chip_and_notifies(self):
        session = self.make("Hello {{ name }}!")
        session.toggle_mode()
        session.move_cursor(BufferPosition.after_chip(1))
        session.backspace()

        assert session.raw == "Hello !"
        assert self.changes == ["Hello !"]
        assert session.tree.chips() == []

    def test_trigger_key_then_choose_variable(self):
        session = self.make("Hi ", variables=[VariableDescriptor("first_name")])
        session.toggle_mode()
        outcome = session.type_text("{")

        assert outcome.prevent_default
        assert session.raw == "Hi "
        assert self.picks == [BufferPosition.at(0, 3)]
        assert session.picker_position == BufferPosition.at(0, 3)

        session.choose_variable(session.catalog.search("first")[0])

        assert session.raw == "Hi {{ first_name }}" + NBSP
        assert session.picker_position is None
        assert session.cursor == BufferPosition.at(2, 1)
        assert self.changes == ["Hi {{ first_name }}" + NBSP]

    def test_choose_variable_without_picker_appends(self):
        session = self.make("")
        session.choose_variable(VariableDescriptor("a"))
        session.choose_variable(VariableDescriptor("b"))

        assert session.raw == "{{ a }}" + NBSP + "{{ b }}" + NBSP

    def test_trigger_key_is_text_in_raw_mode(self):
        session = self.make("Hi ")
        session.type_text("{")

        assert session.raw == "Hi {"
        assert self.picks == []

    def test_cursor_move_and_blur_cancel_picker(self):
        session = self.make("abc")
        session.toggle_mode()
        session.type_text("{")
        session.move_cursor(BufferPosition.at(0, 1))

        assert session.picker_position is None

        session.type_text("{")
        session.blur()

        assert session.picker_position is None
        assert session.raw == "abc"

    def test_escape_cancels_picker(self):
        session = self.make("abc")
        session.toggle_mode()
        session.type_text("{")
        outcome = session.escape()

        assert outcome.handled
        assert session.picker_position is None

    def test_directives_survive_mode_switches(self):
        raw = "{% if a %}\nHello {{ name }}\n{% endif %}"
        session = self.make(raw)
        session.toggle_mode()

        assert [n.kind for n in session.tree.leaves()].count(NodeKind.MARKER) == 2

        session.toggle_mode()

        assert session.raw == raw
        assert session.mode is ViewMode.RAW

    def test_live_to_raw_cleans_spacer(self):
        session = self.make("")
        session.toggle_mode()
        session.choose_variable(VariableDescriptor("x"))
        session.toggle_mode()

        assert session.raw == "{{ x }} "

    def test_absorb_edited_tree(self):
        session = self.make("{% if a %}X{% endif %}")
        session.toggle_mode()
        tree = session.tree.copy()
        tree.set_text(tree.children()[1], "Y")
        session.absorb(tree)

        assert session.raw == "{% if a %}Y{% endif %}"
        assert self.changes == ["{% if a %}Y{% endif %}"]

    def test_absorb_markup_without_markers(self):
        session = self.make("{% if a %}X{% endif %}")
        session.toggle_mode()
        session.absorb_markup("Z")

        assert session.raw == "{% if a %}Z{% endif %}"

    def test_cursor_restoration_falls_back_to_end(self, caplog):
        session = self.make("Hello world")
        session.toggle_mode()
        with caplog.at_level(logging.WARNING, logger="lqe.session"):
            session.absorb_markup("Hi")

        assert session.raw == "Hi"
        assert session.cursor == session.document.end_position()
        assert "Cursor could not be restored" in caplog.text

    def test_reset(self):
        session = self.make("abc")
        session.toggle_mode()
        session.type_text("{")
        session.reset("{{ x }}")

        assert session.raw == "{{ x }}"
        assert session.cursor == BufferPosition.after_chip(0)
        assert session.picker_position is None
        assert self.changes == ["{{ x }}"]

    def test_invalid_intent_position(self):
        session = self.make("abc")

        with pytest.raises(InvalidPositionError):
            session.handle(EditIntent.backspace(BufferPosition.at(3, 0)))
        with pytest.raises(InvalidPositionError):
            session.move_cursor(BufferPosition.at(0, 9))

    def test_version_grows_with_edits(self):
        session = self.make("abc")
        version = session.document.version
        session.backspace()

        assert session.raw == "ab"
        assert session.document.version > version


def test_session_uses_configured_tags():
    config = EditorConfig.from_dict({
        "opening_tags": ["form"],
        "closing_tags": ["endform"],
    })
    session = EditSession("{% form %}x{% endform %}", config=config)

    assert session.document.tokens[0].role is DirectiveRole.OPENING
    assert session.document.tokens[2].role is DirectiveRole.CLOSING


def test_custom_trigger_key():
    picks = []
    session = EditSession("x", config=EditorConfig(trigger_key="@"), open_picker=picks.append)
    session.toggle_mode()
    session.type_text("{")
    session.type_text("@")

    assert session.raw == "x{"
    assert picks == [BufferPosition.at(0, 2)]
