"""Per-browser session state.

The session owns everything the page shows: the strip, the two prompt
fields, the open redo dialog, the error banner and the busy flag. The page
never keeps authoritative copies; it renders ``StudioSession`` views and
posts intents back.
"""

import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from pydantic import BaseModel, Field

from ..errors import SessionBusy
from .panel_store import PanelSequence


class PendingRedo(BaseModel):
    """An open redo dialog."""

    target_panel_id: str
    draft_prompt_text: str = ""


class StudioSession:
    """State for one comic being built in one browser tab.

    ``epoch`` is bumped by every confirmed restart; generation results
    planned under an older epoch are dropped when they arrive.
    """

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now()
        self.last_active = self.created_at
        self.panels = PanelSequence()
        self.prompt = ""
        self.continuation_prompt = ""
        self.pending_redo: PendingRedo | None = None
        self.error: str | None = None
        self.busy_action: str | None = None
        self.epoch = 0
        self.lock = threading.RLock()

    def touch(self) -> None:
        """Record activity; idle sessions are evicted by the web layer."""
        self.last_active = datetime.now()

    def idle_seconds(self, now: datetime | None = None) -> float:
        return ((now or datetime.now()) - self.last_active).total_seconds()

    @property
    def is_busy(self) -> bool:
        return self.busy_action is not None

    @contextmanager
    def busy(self, action: str) -> Iterator[None]:
        """Mark one user action as in flight.

        A second action while one is running raises ``SessionBusy`` instead
        of queueing.
        """
        with self.lock:
            if self.busy_action is not None:
                raise SessionBusy()
            self.busy_action = action
        try:
            yield
        finally:
            with self.lock:
                self.busy_action = None

    def open_redo(self, panel_id: str) -> PendingRedo:
        """Open the redo dialog for an existing panel."""
        with self.lock:
            self.panels.index_of(panel_id)
            self.pending_redo = PendingRedo(target_panel_id=panel_id)
            return self.pending_redo

    def cancel_redo(self) -> None:
        with self.lock:
            self.pending_redo = None

    def set_error(self, message: str) -> None:
        with self.lock:
            self.error = message

    def dismiss_error(self) -> None:
        with self.lock:
            self.error = None

    def restart(self, confirmed: bool) -> bool:
        """Clear the strip and both prompt fields.

        Nothing changes unless ``confirmed`` is true.
        """
        if not confirmed:
            return False
        with self.lock:
            self.epoch += 1
            self.panels.clear()
            self.prompt = ""
            self.continuation_prompt = ""
            self.pending_redo = None
            self.error = None
        return True
