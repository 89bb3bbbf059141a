"""Strip rendering and document export."""

from .pdf_exporter import PdfExporter
from .strip_renderer import StripRenderer, decode_data_url, split_data_url
from .text_renderer import TextRenderer

__all__ = ["PdfExporter", "StripRenderer", "TextRenderer", "decode_data_url", "split_data_url"]
