"""Display rules and view models for the web page.

Everything here is a pure function of session state: the template and the
page script render these views and never hold their own copies of panel
data.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from .config import NARRATION_MARKER
from .state.panel_store import Panel
from .state.session import StudioSession

NARRATION = "narration"
DIALOGUE = "dialogue"

_QUOTES = re.compile(r"['\"]+")


@dataclass(frozen=True)
class PanelDisplay:
    """How a caption is shown on a panel."""

    kind: str
    text: str


def display_panel_text(panel_text: str, marker: str = NARRATION_MARKER) -> PanelDisplay:
    """Turn a stored caption into what the panel shows.

    ``"NARRAÇÃO: Enquanto isso..."`` (marker matched case-insensitively)
    becomes narration without the marker; anything else is dialogue with
    quote characters removed. The stored caption is not modified.
    """
    prefix = f"{marker}:"
    if panel_text[:len(prefix)].casefold() == prefix.casefold():
        return PanelDisplay(kind=NARRATION, text=panel_text[len(prefix):].strip())
    return PanelDisplay(kind=DIALOGUE, text=_QUOTES.sub("", panel_text))


ImageLink = Callable[[Panel], str]


def image_version(panel: Panel) -> str:
    """Short tag that changes whenever the panel artwork changes."""
    return f"{hash(panel.image_url) & 0xFFFFFFFF:08x}"


def panel_view(
    panel: Panel,
    number: int,
    marker: str = NARRATION_MARKER,
    image_link: Optional[ImageLink] = None,
) -> Dict[str, Any]:
    """View of one panel.

    ``image_link`` maps a panel to the URL the page should load its artwork
    from; without it the stored data URL is embedded.
    """
    return {
        "id": panel.id,
        "number": number,
        "image_url": image_link(panel) if image_link else panel.image_url,
        "panel_text": panel.panel_text,
        "scene_description": panel.scene_description,
        "display": asdict(display_panel_text(panel.panel_text, marker)),
    }


def session_view(
    session: StudioSession,
    marker: str = NARRATION_MARKER,
    image_link: Optional[ImageLink] = None,
) -> Dict[str, Any]:
    """Full render state of a session for the page."""
    with session.lock:
        panels = session.panels.panels
        redo = session.pending_redo
        return {
            "session_id": session.session_id,
            "stage": "continue" if panels else "start",
            "panels": [panel_view(p, i + 1, marker, image_link) for i, p in enumerate(panels)],
            "prompt": session.prompt,
            "continuation_prompt": session.continuation_prompt,
            "pending_redo": redo.model_dump() if redo else None,
            "error": session.error,
            "busy": session.busy_action,
            "revision": session.panels.revision,
            "narration_marker": marker,
        }
