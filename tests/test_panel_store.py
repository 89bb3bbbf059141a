"""Tests for the ordered panel store and session state."""

import pytest

from hqstudio.errors import SessionBusy
from hqstudio.state.panel_store import Panel, PanelSequence, new_panel_id
from hqstudio.state.session import StudioSession

from conftest import make_panel


class TestPanel:
    def test_fresh_ids_are_unique(self):
        ids = {new_panel_id() for _ in range(200)}
        assert len(ids) == 200
        assert all(i.startswith("panel-") for i in ids)

    def test_default_id(self):
        panel = Panel(image_url="data:image/png;base64,", panel_text="x", scene_description="y")
        assert panel.id.startswith("panel-")


class TestPanelSequence:
    def test_append_keeps_order(self):
        seq = PanelSequence()
        for n in range(1, 4):
            seq.append(make_panel(n))
        assert [p.id for p in seq] == ["panel-1", "panel-2", "panel-3"]
        assert seq.last.id == "panel-3"
        assert len(seq) == 3

    def test_append_rejects_duplicate_id(self, sequence):
        with pytest.raises(ValueError):
            sequence.append(make_panel(2))

    def test_replace_at_keeps_id_and_position(self, sequence):
        before = [p.model_dump() for p in sequence]
        replacement = make_panel(99, scene_description="outra cena", panel_text="NARRAÇÃO: nova")

        result = sequence.replace_at("panel-2", replacement)

        assert result.id == "panel-2"
        assert len(sequence) == 3
        after = sequence.panels
        assert after[1].id == "panel-2"
        assert after[1].scene_description == "outra cena"
        assert after[1].panel_text == "NARRAÇÃO: nova"
        assert after[0].model_dump() == before[0]
        assert after[2].model_dump() == before[2]

    def test_replace_unknown_id_is_key_error(self, sequence):
        with pytest.raises(KeyError):
            sequence.replace_at("panel-404", make_panel(7))

    def test_edit_text_only_changes_caption(self, sequence):
        original = sequence.get("panel-1")
        assert sequence.edit_text("panel-1", "NARRAÇÃO: outra coisa") is True

        edited = sequence.get("panel-1")
        assert edited.panel_text == "NARRAÇÃO: outra coisa"
        assert edited.scene_description == original.scene_description
        assert edited.image_url == original.image_url
        assert edited.id == original.id

    def test_edit_text_to_same_value_is_noop(self, sequence):
        events = []
        sequence.subscribe(lambda event, panel: events.append(event))
        revision = sequence.revision

        assert sequence.edit_text("panel-1", '"fala 1"') is False
        assert sequence.revision == revision
        assert events == []

    def test_mutations_notify_listeners(self):
        seq = PanelSequence()
        events = []
        seq.subscribe(lambda event, panel: events.append(event))

        seq.append(make_panel(1))
        seq.edit_text("panel-1", "novo")
        seq.replace_at("panel-1", make_panel(2))
        seq.clear()

        assert events == ["append", "edit_text", "replace", "clear"]
        assert seq.revision == 4

    def test_scene_descriptions_before(self, sequence):
        assert sequence.scene_descriptions() == ["cena 1", "cena 2", "cena 3"]
        assert sequence.scene_descriptions(before="panel-1") == []
        assert sequence.scene_descriptions(before="panel-3") == ["cena 1", "cena 2"]

    def test_panels_property_is_a_copy(self, sequence):
        snapshot = sequence.panels
        snapshot.clear()
        assert len(sequence) == 3

    def test_clear(self, sequence):
        sequence.clear()
        assert len(sequence) == 0
        assert sequence.last is None
        assert not sequence


class TestStudioSession:
    def test_restart_requires_confirmation(self, filled_session):
        filled_session.prompt = "algo"
        filled_session.continuation_prompt = "mais algo"
        epoch = filled_session.epoch

        assert filled_session.restart(confirmed=False) is False
        assert len(filled_session.panels) == 4
        assert filled_session.prompt == "algo"
        assert filled_session.continuation_prompt == "mais algo"
        assert filled_session.epoch == epoch

    def test_confirmed_restart_clears_everything(self, filled_session):
        filled_session.continuation_prompt = "mais algo"
        filled_session.open_redo("panel-2")
        filled_session.set_error("erro")

        assert filled_session.restart(confirmed=True) is True
        assert len(filled_session.panels) == 0
        assert filled_session.prompt == ""
        assert filled_session.continuation_prompt == ""
        assert filled_session.pending_redo is None
        assert filled_session.error is None
        assert filled_session.epoch == 1

    def test_open_and_cancel_redo(self, filled_session):
        pending = filled_session.open_redo("panel-3")
        assert pending.target_panel_id == "panel-3"
        assert pending.draft_prompt_text == ""
        filled_session.cancel_redo()
        assert filled_session.pending_redo is None

    def test_open_redo_unknown_panel(self, filled_session):
        with pytest.raises(KeyError):
            filled_session.open_redo("panel-404")
        assert filled_session.pending_redo is None

    def test_busy_rejects_second_action(self):
        session = StudioSession()
        with session.busy("new"):
            assert session.is_busy
            with pytest.raises(SessionBusy):
                with session.busy("continue"):
                    pass
        assert not session.is_busy

    def test_busy_released_on_error(self):
        session = StudioSession()
        with pytest.raises(RuntimeError):
            with session.busy("new"):
                raise RuntimeError("boom")
        assert session.busy_action is None
