"""Ordered panel storage for a comic strip.

The store owns panel identity and ordering. Panels are only ever appended,
replaced in place (redo) or have their text edited; nothing reorders or
removes a single panel. ``clear()`` empties the whole strip on restart.
"""

import uuid
from typing import Callable, Iterator

from pydantic import BaseModel, Field


def new_panel_id() -> str:
    """Generate a fresh opaque panel identifier."""
    return f"panel-{uuid.uuid4().hex[:12]}"


class Panel(BaseModel):
    """A single frame of the strip."""

    id: str = Field(default_factory=new_panel_id, description="Stable identifier, kept across edits and redo")
    image_url: str = Field(description="data: URL with the rendered artwork")
    panel_text: str = Field(description="Caption or dialogue shown on the panel")
    scene_description: str = Field(description="Prompt/context used to generate this panel")


Listener = Callable[[str, Panel | None], None]


class PanelSequence:
    """The strip: an ordered list of panels plus a mutation counter.

    ``revision`` increases by one for every effective mutation and each
    registered listener is called with ``(event, panel)`` where event is one
    of ``"append"``, ``"replace"``, ``"edit_text"`` or ``"clear"``.

    Looking up an id that is not in the sequence raises ``KeyError``; ids
    only ever come from the store itself, so that is a caller bug.
    """

    def __init__(self, panels: list[Panel] | None = None):
        self._panels: list[Panel] = list(panels or [])
        self._listeners: list[Listener] = []
        self.revision = 0

    def __len__(self) -> int:
        return len(self._panels)

    def __iter__(self) -> Iterator[Panel]:
        return iter(list(self._panels))

    def __bool__(self) -> bool:
        return bool(self._panels)

    @property
    def panels(self) -> list[Panel]:
        """A snapshot copy of the ordered panels."""
        return list(self._panels)

    @property
    def last(self) -> Panel | None:
        return self._panels[-1] if self._panels else None

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str, panel: Panel | None) -> None:
        self.revision += 1
        for listener in self._listeners:
            listener(event, panel)

    def contains(self, panel_id: str) -> bool:
        return any(p.id == panel_id for p in self._panels)

    def index_of(self, panel_id: str) -> int:
        for i, panel in enumerate(self._panels):
            if panel.id == panel_id:
                return i
        raise KeyError(panel_id)

    def get(self, panel_id: str) -> Panel:
        return self._panels[self.index_of(panel_id)]

    def scene_descriptions(self, before: str | None = None) -> list[str]:
        """Scene descriptions in strip order.

        With ``before`` set, only panels strictly before that panel are
        included.
        """
        panels = self._panels
        if before is not None:
            panels = panels[:self.index_of(before)]
        return [p.scene_description for p in panels]

    def append(self, panel: Panel) -> Panel:
        """Add a panel at the end of the strip."""
        if self.contains(panel.id):
            raise ValueError(f"Duplicate panel id: {panel.id}")
        self._panels.append(panel)
        self._notify("append", panel)
        return panel

    def replace_at(self, panel_id: str, panel: Panel) -> Panel:
        """Overwrite the content of an existing panel, keeping its id and position."""
        index = self.index_of(panel_id)
        replacement = panel.model_copy(update={"id": panel_id})
        self._panels[index] = replacement
        self._notify("replace", replacement)
        return replacement

    def edit_text(self, panel_id: str, new_text: str) -> bool:
        """Change only the caption of a panel.

        Returns False (and fires no event) when the text is unchanged.
        """
        index = self.index_of(panel_id)
        current = self._panels[index]
        if current.panel_text == new_text:
            return False
        updated = current.model_copy(update={"panel_text": new_text})
        self._panels[index] = updated
        self._notify("edit_text", updated)
        return True

    def clear(self) -> None:
        """Remove every panel."""
        self._panels.clear()
        self._notify("clear", None)
