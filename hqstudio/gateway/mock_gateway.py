"""Offline gateway for running the studio without an API key."""

import io
import itertools
import random

from PIL import Image, ImageDraw

from ..config import NARRATION_MARKER
from ..export.text_renderer import TextRenderer
from .base import GeneratedImage, GenerationGateway, ScriptData

_PALETTE = [
    (220, 38, 38),
    (37, 99, 235),
    (234, 179, 8),
    (22, 163, 74),
    (147, 51, 234),
]

_SUGGESTIONS = [
    "O vilão revela ser seu irmão perdido!",
    "Uma nave alienígena surge nos céus.",
    "As luzes da cidade se apagam de repente.",
    "Um velho aliado aparece com uma traição nos olhos.",
]


class MockGateway(GenerationGateway):
    """Deterministic scripts and placeholder art drawn with Pillow."""

    def __init__(self, image_size: int = 512, seed: int = 0):
        self.image_size = image_size
        self._rng = random.Random(seed)
        self._counter = itertools.count(1)
        self._suggestions = itertools.cycle(_SUGGESTIONS)
        self._text_renderer = TextRenderer()

    def generate_script(self, prompt: str, context: str = "") -> ScriptData:
        n = next(self._counter)
        idea = " ".join(prompt.split())[:240]
        if n % 2:
            panel_text = f"{NARRATION_MARKER}: Capítulo {n}..."
        else:
            panel_text = '"Isso ainda não acabou!"'
        return ScriptData(scene_description=f"Cena {n}: {idea}", panel_text=panel_text)

    def generate_image(self, scene_description: str) -> list[GeneratedImage]:
        size = self.image_size
        color = self._rng.choice(_PALETTE)
        img = Image.new("RGB", (size, size), color)
        draw = ImageDraw.Draw(img)

        # ben-day dots
        step = max(8, size // 32)
        for y in range(0, size, step):
            offset = step // 2 if (y // step) % 2 else 0
            for x in range(offset, size, step):
                draw.ellipse([x, y, x + step // 3, y + step // 3], fill=(0, 0, 0))

        font = self._text_renderer._get_font(max(14, size // 24))
        lines = self._text_renderer._wrap_text(scene_description, font, size - 40)[:6]
        draw.rectangle([10, size // 3 - 10, size - 10, size // 3 + 30 * len(lines)], fill="white", outline="black", width=3)
        for i, line in enumerate(lines):
            draw.text((20, size // 3 + i * 30 - 4), line, font=font, fill="black")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return [GeneratedImage(data=buf.getvalue(), mime_type="image/png")]

    def suggest_continuation(self, context: str) -> str:
        return next(self._suggestions)
