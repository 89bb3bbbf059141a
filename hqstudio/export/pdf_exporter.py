"""PDF export of the finished strip.

The strip is rendered without chrome, then placed on a single page sized to
fit it, with the title centred above and the footer centred below.
"""

import logging
import re
from typing import Sequence

from fpdf import FPDF

from ..config import StudioConfig
from ..errors import ExportFailure
from ..state.panel_store import Panel
from .strip_renderer import StripRenderer

logger = logging.getLogger(__name__)

_PDF_REPLACEMENTS = {
    "\u2014": "-",
    "\u2013": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
}


def sanitize_text_for_pdf(text: str) -> str:
    """Make text safe for the built-in (latin-1) PDF fonts."""
    for char, replacement in _PDF_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return re.sub(r"[^\x00-\xFF]", "?", text)


class PdfExporter:
    """Builds the downloadable PDF for a strip."""

    def __init__(self, config: StudioConfig, renderer: StripRenderer | None = None):
        self.config = config
        self.renderer = renderer or StripRenderer(narration_marker=config.narration_marker)

    def export(self, panels: Sequence[Panel]) -> bytes:
        """Return the PDF bytes, or raise ``ExportFailure``."""
        if not panels:
            raise ExportFailure("Nenhum painel para exportar.")

        try:
            with self.renderer.chrome_suppressed():
                strip = self.renderer.render(panels)
            if strip is None:
                raise ExportFailure()
            return self._build_pdf(strip)
        except ExportFailure:
            raise
        except Exception as e:
            logger.error("PDF export failed: %s", e)
            raise ExportFailure() from e

    def _build_pdf(self, strip) -> bytes:
        margin = self.config.export_margin
        width, height = strip.size

        pdf = FPDF(orientation="portrait", unit="pt", format=(width, height + margin * 2))
        pdf.set_auto_page_break(auto=False)
        pdf.set_margins(0, 0, 0)
        pdf.add_page()

        pdf.set_font("helvetica", style="B", size=24)
        pdf.set_xy(0, 0)
        pdf.cell(w=width, h=margin, text=sanitize_text_for_pdf(self.config.export_title), align="C")

        pdf.image(strip, x=0, y=margin, w=width, h=height)

        pdf.set_font("helvetica", size=12)
        pdf.set_xy(0, margin + height)
        pdf.cell(w=width, h=margin, text=sanitize_text_for_pdf(self.config.export_footer), align="C")

        return bytes(pdf.output())
