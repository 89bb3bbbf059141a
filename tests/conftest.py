"""Shared fixtures: a recording fake gateway and ready-made panels."""

import io
from typing import Callable, Optional

import pytest
from PIL import Image

from hqstudio.config import StudioConfig
from hqstudio.continuity import ContinuityController
from hqstudio.errors import GenerationFailure
from hqstudio.gateway.base import GeneratedImage, GenerationGateway, ScriptData
from hqstudio.state.panel_store import Panel, PanelSequence
from hqstudio.state.session import StudioSession


def png_bytes(color=(200, 30, 30), size=(16, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_panel(n: int, **overrides) -> Panel:
    fields = {
        "id": f"panel-{n}",
        "image_url": GeneratedImage(data=png_bytes()).data_url,
        "panel_text": f'"fala {n}"',
        "scene_description": f"cena {n}",
    }
    fields.update(overrides)
    return Panel(**fields)


class FakeGateway(GenerationGateway):
    """Records every call and answers from queues or simple defaults."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.scripts: list[ScriptData] = []
        self.image_count = 1
        self.suggestion = "Uma nave alienígena surge nos céus."
        self.script_error: Optional[Exception] = None
        self.image_error: Optional[Exception] = None
        self.on_script: Optional[Callable[[], None]] = None
        self._n = 0

    @property
    def script_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "script"]

    def generate_script(self, prompt: str, context: str = "") -> ScriptData:
        self.calls.append(("script", prompt, context))
        if self.on_script:
            self.on_script()
        if self.script_error:
            raise self.script_error
        if self.scripts:
            return self.scripts.pop(0)
        self._n += 1
        return ScriptData(scene_description=f"nova cena {self._n}", panel_text=f'"nova fala {self._n}"')

    def generate_image(self, scene_description: str) -> list[GeneratedImage]:
        self.calls.append(("image", scene_description))
        if self.image_error:
            raise self.image_error
        return [GeneratedImage(data=png_bytes((30, 30, 200))) for _ in range(self.image_count)]

    def suggest_continuation(self, context: str) -> str:
        self.calls.append(("suggest", context))
        if self.script_error:
            raise self.script_error
        return self.suggestion


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def controller(gateway):
    return ContinuityController(gateway)


@pytest.fixture
def session():
    return StudioSession(session_id="test-session")


@pytest.fixture
def filled_session(session):
    """A session whose strip already has four panels."""
    for n in range(1, 5):
        session.panels.append(make_panel(n))
    return session


@pytest.fixture
def sequence():
    return PanelSequence([make_panel(n) for n in range(1, 4)])


@pytest.fixture
def config():
    return StudioConfig(log_dir=None, use_mock=True)


@pytest.fixture
def generation_failure():
    return GenerationFailure("Falha ao gerar o roteiro.")
