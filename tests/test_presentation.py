"""Tests for caption display rules and the session view."""

import pytest

from hqstudio.presentation import (
    DIALOGUE,
    NARRATION,
    display_panel_text,
    session_view,
)

from conftest import make_panel


class TestDisplayPanelText:
    @pytest.mark.parametrize("raw", [
        "NARRAÇÃO: Enquanto isso...",
        "narração: Enquanto isso...",
        "Narração:   Enquanto isso...",
    ])
    def test_narration_marker_is_case_insensitive(self, raw):
        display = display_panel_text(raw)
        assert display.kind == NARRATION
        assert display.text == "Enquanto isso..."

    def test_dialogue_drops_quotes(self):
        display = display_panel_text('"Você não vai escapar!"')
        assert display.kind == DIALOGUE
        assert display.text == "Você não vai escapar!"

    def test_dialogue_drops_single_quotes_too(self):
        assert display_panel_text("'Corra!'").text == "Corra!"

    def test_marker_in_the_middle_is_dialogue(self):
        display = display_panel_text('Ele disse "NARRAÇÃO: não"')
        assert display.kind == DIALOGUE

    def test_custom_marker(self):
        display = display_panel_text("NARRATION: Meanwhile", marker="NARRATION")
        assert display.kind == NARRATION
        assert display.text == "Meanwhile"

    def test_stored_text_untouched(self):
        panel = make_panel(1, panel_text='"Ei!"')
        display_panel_text(panel.panel_text)
        assert panel.panel_text == '"Ei!"'


class TestSessionView:
    def test_empty_session_is_start_stage(self, session):
        view = session_view(session)
        assert view["stage"] == "start"
        assert view["panels"] == []
        assert view["pending_redo"] is None
        assert view["busy"] is None
        assert view["session_id"] == "test-session"

    def test_panels_are_numbered_from_one(self, filled_session):
        filled_session.panels.edit_text("panel-2", "NARRAÇÃO: Mais tarde")
        view = session_view(filled_session)

        assert view["stage"] == "continue"
        assert [p["number"] for p in view["panels"]] == [1, 2, 3, 4]
        assert view["panels"][0]["display"] == {"kind": DIALOGUE, "text": "fala 1"}
        assert view["panels"][1]["display"] == {"kind": NARRATION, "text": "Mais tarde"}
        assert view["panels"][1]["panel_text"] == "NARRAÇÃO: Mais tarde"

    def test_reflects_dialog_and_error(self, filled_session):
        filled_session.open_redo("panel-4")
        filled_session.set_error("Falhou")
        view = session_view(filled_session)
        assert view["pending_redo"] == {"target_panel_id": "panel-4", "draft_prompt_text": ""}
        assert view["error"] == "Falhou"

    def test_revision_follows_edits(self, filled_session):
        first = session_view(filled_session)["revision"]
        filled_session.panels.edit_text("panel-1", "outra")
        assert session_view(filled_session)["revision"] == first + 1

    def test_image_link_replaces_embedded_artwork(self, filled_session):
        view = session_view(filled_session, image_link=lambda panel: f"/img/{panel.id}")
        assert [p["image_url"] for p in view["panels"]] == [f"/img/panel-{n}" for n in range(1, 5)]

    def test_artwork_embedded_by_default(self, filled_session):
        view = session_view(filled_session)
        assert view["panels"][0]["image_url"].startswith("data:image/png;base64,")
