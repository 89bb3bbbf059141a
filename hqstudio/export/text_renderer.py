"""Text rendering for exported panels.

Draws the panel caption the same way the page shows it: narration in a
full-width yellow box along the top edge, dialogue in a rounded white
speech bubble near the bottom. Also draws the yellow panel number badge.
"""

from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from ..presentation import NARRATION, PanelDisplay

NARRATION_FILL = (254, 243, 199)
BADGE_FILL = (250, 204, 21)


class TextRenderer:
    """Renders captions and badges onto panel images."""

    def __init__(
        self,
        font_path: Optional[str] = None,
        font_size: int = 26,
        min_font_size: int = 12,
        line_spacing: float = 1.2,
    ):
        """Initialize the text renderer.

        Args:
            font_path: Path to a TrueType font file. Common system fonts are tried if None.
            font_size: Starting font size.
            min_font_size: Smallest size tried when a caption does not fit.
            line_spacing: Line spacing multiplier.
        """
        self.font_path = font_path
        self.font_size = font_size
        self.min_font_size = min_font_size
        self.line_spacing = line_spacing

    def _get_font(self, size: int) -> ImageFont.FreeTypeFont:
        """Get a font at the specified size."""
        if self.font_path:
            try:
                return ImageFont.truetype(self.font_path, size)
            except (OSError, IOError):
                pass

        comic_fonts = [
            "Comic Sans MS",
            "comic.ttf",
            "/usr/share/fonts/truetype/msttcorefonts/comic.ttf",
            "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "DejaVuSans-Bold.ttf",
        ]
        for font_name in comic_fonts:
            try:
                return ImageFont.truetype(font_name, size)
            except (OSError, IOError):
                continue

        return ImageFont.load_default(size=size)

    def _wrap_text(self, text: str, font: ImageFont.FreeTypeFont, max_width: int) -> List[str]:
        """Greedy word wrap to ``max_width`` pixels."""
        words = text.split()
        lines = []
        current_line: List[str] = []

        for word in words:
            test_line = " ".join(current_line + [word])
            bbox = font.getbbox(test_line)
            if bbox[2] - bbox[0] <= max_width:
                current_line.append(word)
            else:
                if current_line:
                    lines.append(" ".join(current_line))
                current_line = [word]

        if current_line:
            lines.append(" ".join(current_line))

        return lines if lines else [text]

    def _line_height(self, font: ImageFont.FreeTypeFont) -> int:
        bbox = font.getbbox("Ag")
        return int((bbox[3] - bbox[1]) * self.line_spacing) + 1

    def _fit_text(self, text: str, max_width: int, max_height: int):
        """Largest font size whose wrapped text fits the box."""
        size = self.font_size
        while True:
            font = self._get_font(size)
            lines = self._wrap_text(text, font, max_width)
            if len(lines) * self._line_height(font) <= max_height or size <= self.min_font_size:
                return font, lines
            size -= 2

    def _draw_lines(self, draw, lines, font, x: int, y: int, width: int, centered: bool) -> None:
        line_height = self._line_height(font)
        for i, line in enumerate(lines):
            bbox = font.getbbox(line)
            line_width = bbox[2] - bbox[0]
            line_x = x + (width - line_width) // 2 if centered else x
            draw.text((line_x, y + i * line_height), line, font=font, fill="black")

    def draw_caption(self, image: Image.Image, display: PanelDisplay) -> Image.Image:
        """Return a copy of ``image`` with the caption drawn on it."""
        if not display.text.strip():
            return image

        img = image.copy().convert("RGB")
        draw = ImageDraw.Draw(img)
        width, height = img.size
        padding = max(8, width // 50)

        if display.kind == NARRATION:
            font, lines = self._fit_text(display.text, width - 2 * padding, height // 4)
            box_height = len(lines) * self._line_height(font) + 2 * padding
            draw.rectangle([0, 0, width - 1, box_height], fill=NARRATION_FILL, outline="black", width=3)
            self._draw_lines(draw, lines, font, padding, padding, width - 2 * padding, centered=False)
            return img

        bubble_width = int(width * 11 / 12)
        font, lines = self._fit_text(display.text, bubble_width - 2 * padding, height // 4)
        bubble_height = len(lines) * self._line_height(font) + 2 * padding
        x = (width - bubble_width) // 2
        y = height - bubble_height - max(16, height // 25)
        draw.rounded_rectangle(
            [x, y, x + bubble_width, y + bubble_height],
            radius=18,
            fill="white",
            outline="black",
            width=3,
        )
        self._draw_lines(draw, lines, font, x + padding, y + padding, bubble_width - 2 * padding, centered=True)
        return img

    def draw_badge(self, image: Image.Image, number: int) -> Image.Image:
        """Return a copy of ``image`` with the panel number in the top-left corner."""
        img = image.copy().convert("RGB")
        draw = ImageDraw.Draw(img)
        font = self._get_font(max(18, img.width // 16))
        label = str(number)
        bbox = font.getbbox(label)
        pad = 10
        box = [0, 0, bbox[2] - bbox[0] + 2 * pad, bbox[3] - bbox[1] + 2 * pad]
        draw.rectangle(box, fill=BADGE_FILL, outline="black", width=4)
        draw.text((pad - bbox[0], pad - bbox[1]), label, font=font, fill="black")
        return img
