"""Strip and session state."""

from .panel_store import Panel, PanelSequence, new_panel_id
from .session import PendingRedo, StudioSession

__all__ = ["Panel", "PanelSequence", "PendingRedo", "StudioSession", "new_panel_id"]
