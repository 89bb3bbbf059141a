"""Generation gateway contract.

The continuity controller only talks to the models through this interface,
so the real OpenAI client, the offline mock and test fakes are
interchangeable.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import BaseModel


class ScriptData(BaseModel):
    """Script for one panel as returned by the text model."""

    scene_description: str
    panel_text: str


@dataclass
class GeneratedImage:
    """Raw artwork returned by the image model."""

    data: bytes
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def sniff_mime_type(data: bytes) -> str:
    """Guess the image MIME type from its magic bytes."""
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


class GenerationGateway(ABC):
    """Opaque capability boundary around the generative models.

    Implementations raise ``GenerationFailure`` for any transport or model
    error and never retry.
    """

    @abstractmethod
    def generate_script(self, prompt: str, context: str = "") -> ScriptData:
        """Produce a scene description and caption for the next panel.

        An empty ``context`` means the prompt describes the first panel.
        """

    @abstractmethod
    def generate_image(self, scene_description: str) -> list[GeneratedImage]:
        """Render artwork for a scene description."""

    @abstractmethod
    def suggest_continuation(self, context: str) -> str:
        """Propose one short sentence for what happens next."""
