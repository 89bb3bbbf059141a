"""Continuity controller: what to ask the models, and how to merge the answer.

Each user action goes through three steps:

1. **Plan** - validate the input and compute the ``(context, prompt)`` pair
   from the current strip (``plan_start``, ``plan_continue``, ``plan_redo``).
2. **Generate** - run the shared script-then-image step against the gateway
   and build a ``PanelResult``.
3. **Apply** - merge the result into the session's ``PanelSequence``.

The session-level operations (``start_story``, ``continue_story``,
``redo_panel``, ``suggest_continuation``) chain the three steps, holding the
session lock only while reading or writing state, never while the models
are working.

Context rules:
    new story       context ""                       prompt = input
    continue        context all scenes               prompt = last scene + input
    redo panel i    context scenes of panels < i     prompt = input
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidGenerationResult, ValidationError
from .gateway.base import GenerationGateway
from .state.panel_store import Panel, PanelSequence
from .state.session import PendingRedo, StudioSession

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = " "
_QUOTE_CHARS = "'\""


class ActionKind(str, Enum):
    NEW = "new"
    CONTINUE = "continue"
    REDO = "redo"


@dataclass(frozen=True)
class GenerationRequest:
    """The exact call planned for one user action."""

    kind: ActionKind
    prompt: str
    context: str
    target_panel_id: Optional[str] = None


@dataclass(frozen=True)
class PanelResult:
    """A freshly generated panel waiting to be applied.

    ``epoch`` is the session epoch at planning time; a restart in between
    makes the result stale.
    """

    request: GenerationRequest
    panel: Panel
    epoch: int = 0


def join_context(scene_descriptions: list[str]) -> str:
    return CONTEXT_SEPARATOR.join(scene_descriptions)


def continuation_prompt(last_scene_description: str, prompt_text: str) -> str:
    return f'{last_scene_description}. User added: "{prompt_text}"'


def _require_text(prompt_text: str) -> None:
    if not isinstance(prompt_text, str) or not prompt_text.strip():
        raise ValidationError()


class ContinuityController:
    """Plans, generates and applies panels for a session.

    Args:
        gateway: The generation capability. Injected so tests can pass a fake.
    """

    def __init__(self, gateway: GenerationGateway):
        self.gateway = gateway

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_start(self, panels: PanelSequence, prompt_text: str) -> GenerationRequest:
        _require_text(prompt_text)
        if panels:
            raise ValidationError("A história já começou. Continue a partir do último painel.")
        return GenerationRequest(kind=ActionKind.NEW, prompt=prompt_text, context="")

    def plan_continue(self, panels: PanelSequence, prompt_text: str) -> GenerationRequest:
        _require_text(prompt_text)
        if not panels:
            raise ValidationError("Comece a história antes de continuar.")
        return GenerationRequest(
            kind=ActionKind.CONTINUE,
            prompt=continuation_prompt(panels.last.scene_description, prompt_text),
            context=join_context(panels.scene_descriptions()),
        )

    def plan_redo(self, panels: PanelSequence, panel_id: str, prompt_text: str) -> GenerationRequest:
        """Plan a redo. Raises ``KeyError`` for an id that is not in the strip."""
        _require_text(prompt_text)
        return GenerationRequest(
            kind=ActionKind.REDO,
            prompt=prompt_text,
            context=join_context(panels.scene_descriptions(before=panel_id)),
            target_panel_id=panel_id,
        )

    # ------------------------------------------------------------------
    # Shared generation step
    # ------------------------------------------------------------------

    def generate(self, request: GenerationRequest, epoch: int = 0) -> PanelResult:
        """Script first, then artwork for that script. No retries."""
        script = self.gateway.generate_script(request.prompt, request.context)
        if not script.scene_description.strip() or not script.panel_text.strip():
            raise InvalidGenerationResult()

        images = self.gateway.generate_image(script.scene_description)
        if len(images) != 1:
            raise InvalidGenerationResult(f"Esperava uma imagem, recebi {len(images)}.")

        panel = Panel(
            image_url=images[0].data_url,
            panel_text=script.panel_text,
            scene_description=script.scene_description,
        )
        return PanelResult(request=request, panel=panel, epoch=epoch)

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def apply(self, session: StudioSession, result: PanelResult) -> bool:
        """Merge a result into the session.

        Returns False, changing nothing, when the result is stale (the
        session restarted since it was planned) or its redo target is gone.
        """
        request = result.request
        with session.lock:
            if result.epoch != session.epoch:
                logger.info("Discarding %s result from epoch %d (now %d)", request.kind.value, result.epoch, session.epoch)
                return False

            if request.kind is ActionKind.REDO:
                if not session.panels.contains(request.target_panel_id):
                    logger.info("Discarding redo for missing panel %s", request.target_panel_id)
                    return False
                session.panels.replace_at(request.target_panel_id, result.panel)
                if session.pending_redo and session.pending_redo.target_panel_id == request.target_panel_id:
                    session.pending_redo = None
            else:
                session.panels.append(result.panel)
                if request.kind is ActionKind.NEW:
                    session.prompt = ""
                else:
                    session.continuation_prompt = ""

        logger.info("Applied %s panel to session %s", request.kind.value, session.session_id)
        return True

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def start_story(self, session: StudioSession, prompt_text: str) -> PanelResult:
        with session.busy(ActionKind.NEW.value):
            with session.lock:
                session.prompt = prompt_text
                request = self.plan_start(session.panels, prompt_text)
                epoch = session.epoch
            result = self.generate(request, epoch)
            self.apply(session, result)
            return result

    def continue_story(self, session: StudioSession, prompt_text: str) -> PanelResult:
        with session.busy(ActionKind.CONTINUE.value):
            with session.lock:
                session.continuation_prompt = prompt_text
                request = self.plan_continue(session.panels, prompt_text)
                epoch = session.epoch
            result = self.generate(request, epoch)
            self.apply(session, result)
            return result

    def redo_panel(self, session: StudioSession, panel_id: str, prompt_text: str) -> PanelResult:
        with session.busy(ActionKind.REDO.value):
            with session.lock:
                session.panels.index_of(panel_id)
                session.pending_redo = PendingRedo(target_panel_id=panel_id, draft_prompt_text=prompt_text)
                request = self.plan_redo(session.panels, panel_id, prompt_text)
                epoch = session.epoch
            result = self.generate(request, epoch)
            self.apply(session, result)
            return result

    def suggest_continuation(self, session: StudioSession) -> Optional[str]:
        """Fill (but do not submit) the continuation field with an idea.

        Does nothing and returns None when the strip is empty.
        """
        with session.busy("suggest"):
            with session.lock:
                if not session.panels:
                    return None
                context = join_context(session.panels.scene_descriptions())
                epoch = session.epoch

            suggestion = self.gateway.suggest_continuation(context).strip().strip(_QUOTE_CHARS).strip()

            with session.lock:
                if epoch != session.epoch:
                    return None
                session.continuation_prompt = suggestion
            return suggestion
