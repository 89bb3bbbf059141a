"""Composite rendering of the whole strip.

Lays the panels out in rows of up to three, each with its caption drawn
over the artwork and, while chrome is visible, its number badge.
"""

import base64
import binascii
import io
from contextlib import contextmanager
from typing import Iterable, Iterator

from PIL import Image

from ..config import NARRATION_MARKER
from ..presentation import display_panel_text
from ..state.panel_store import Panel
from .text_renderer import TextRenderer

BACKGROUND = (209, 213, 219)


def split_data_url(image_url: str) -> tuple[str, bytes]:
    """Return the MIME type and raw bytes held in a base64 ``data:`` URL."""
    if not image_url.startswith("data:") or "," not in image_url:
        raise ValueError("Panel image is not a data URL")
    header, payload = image_url.split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("Panel image is not base64 encoded")
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError("Panel image payload is corrupt") from e
    return header[len("data:"):-len(";base64")] or "image/png", raw


def decode_data_url(image_url: str) -> Image.Image:
    """Open the image held in a ``data:`` URL."""
    _, raw = split_data_url(image_url)
    img = Image.open(io.BytesIO(raw))
    img.load()
    return img


class StripRenderer:
    """Renders panels into one image.

    ``show_chrome`` controls UI decorations (the number badges). Use
    ``chrome_suppressed()`` around a capture so they are hidden for it and
    come back afterwards even if the capture fails.
    """

    def __init__(
        self,
        text_renderer: TextRenderer | None = None,
        panel_size: int = 512,
        max_panels_per_row: int = 3,
        gap: int = 24,
        border: int = 16,
        narration_marker: str = NARRATION_MARKER,
    ):
        self.text_renderer = text_renderer or TextRenderer()
        self.panel_size = panel_size
        self.max_panels_per_row = max_panels_per_row
        self.gap = gap
        self.border = border
        self.narration_marker = narration_marker
        self.show_chrome = True

    @contextmanager
    def chrome_suppressed(self) -> Iterator["StripRenderer"]:
        previous = self.show_chrome
        self.show_chrome = False
        try:
            yield self
        finally:
            self.show_chrome = previous

    def render_panel(self, panel: Panel, number: int) -> Image.Image:
        """Render a single panel at ``panel_size`` with caption (and badge)."""
        img = decode_data_url(panel.image_url).convert("RGB")
        img = img.resize((self.panel_size, self.panel_size), Image.Resampling.LANCZOS)
        img = self.text_renderer.draw_caption(
            img, display_panel_text(panel.panel_text, self.narration_marker)
        )
        if self.show_chrome:
            img = self.text_renderer.draw_badge(img, number)
        return img

    def render(self, panels: Iterable[Panel]) -> Image.Image | None:
        """Render the strip, or return None when there are no panels."""
        images = [self.render_panel(p, i + 1) for i, p in enumerate(panels)]
        if not images:
            return None

        cols = min(len(images), self.max_panels_per_row)
        rows = (len(images) + cols - 1) // cols
        size = self.panel_size

        total_width = cols * size + (cols - 1) * self.gap + self.border * 2
        total_height = rows * size + (rows - 1) * self.gap + self.border * 2
        strip = Image.new("RGB", (total_width, total_height), BACKGROUND)

        for i, img in enumerate(images):
            row, col = divmod(i, cols)
            x = self.border + col * (size + self.gap)
            y = self.border + row * (size + self.gap)
            strip.paste(img, (x, y))

        return strip

