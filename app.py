#!/usr/bin/env python3
"""HQ Studio - Web Interface"""

import io
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, jsonify, render_template, request, send_file

from hqstudio.config import StudioConfig
from hqstudio.continuity import ContinuityController
from hqstudio.errors import (
    ExportFailure,
    GenerationFailure,
    SessionBusy,
    StudioError,
    ValidationError,
)
from hqstudio.export import PdfExporter, split_data_url
from hqstudio.gateway import GenerationGateway, create_gateway
from hqstudio.logging.interaction_logger import InteractionLogger
from hqstudio.presentation import image_version, session_view
from hqstudio.state.session import StudioSession

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[StudioConfig, Optional[InteractionLogger]], GenerationGateway]

_STATUS = {
    ValidationError: 400,
    SessionBusy: 409,
    GenerationFailure: 502,
    ExportFailure: 500,
}


class ComicSession:
    """One browser tab's comic: state, gateway and controller."""

    def __init__(self, config: StudioConfig, gateway_factory: GatewayFactory):
        self.config = config
        self.state = StudioSession()
        self.interaction_logger = (
            InteractionLogger(label="hq", log_dir=config.log_dir) if config.log_dir else None
        )
        self.gateway = gateway_factory(config, self.interaction_logger)
        self.controller = ContinuityController(self.gateway)
        self.exporter = PdfExporter(config)

    def image_link(self, panel) -> str:
        return f"/api/session/{self.state.session_id}/panels/{panel.id}/image?v={image_version(panel)}"

    def view(self) -> dict:
        return session_view(self.state, self.config.narration_marker, self.image_link)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text_field(data: dict, key: str) -> str:
    """String value of ``key``; anything that is not a string counts as blank."""
    value = data.get(key, "")
    return value if isinstance(value, str) else ""


def create_app(
    config: Optional[StudioConfig] = None,
    gateway_factory: Optional[GatewayFactory] = None,
) -> Flask:
    """Build the Flask app.

    Args:
        config: Settings; read from the environment when omitted.
        gateway_factory: Builds one gateway per session. Defaults to OpenAI
            when an API key is configured and the offline mock otherwise.
    """
    app = Flask(__name__)
    config = config or StudioConfig.from_env()
    gateway_factory = gateway_factory or create_gateway

    # Store active sessions
    sessions: dict[str, ComicSession] = {}
    app.extensions["hqstudio.sessions"] = sessions

    sessions_lock = threading.Lock()

    def evict_sessions() -> None:
        """Drop idle sessions, then the least recently used past the cap.

        Sessions with an action in flight are never dropped.
        """
        now = datetime.now()
        with sessions_lock:
            idle = [
                sid for sid, comic in sessions.items()
                if not comic.state.is_busy and comic.state.idle_seconds(now) > config.session_ttl
            ]
            overflow = len(sessions) - len(idle) - (config.max_sessions - 1)
            if overflow > 0:
                candidates = sorted(
                    (c for sid, c in sessions.items() if sid not in idle and not c.state.is_busy),
                    key=lambda c: c.state.last_active,
                )
                idle.extend(c.state.session_id for c in candidates[:overflow])
            for sid in idle:
                del sessions[sid]
        if idle:
            logger.info("Evicted %d session(s), %d active", len(idle), len(sessions))

    def get_session(session_id: str) -> Optional[ComicSession]:
        comic = sessions.get(session_id)
        if comic:
            comic.state.touch()
        return comic

    def not_found(message: str = "Sessão não encontrada."):
        return jsonify({"error": message}), 404

    def failure(comic: ComicSession, error: StudioError):
        status = next((code for kind, code in _STATUS.items() if isinstance(error, kind)), 500)
        if not isinstance(error, SessionBusy):
            comic.state.set_error(error.message)
        logger.warning("Action failed in session %s: %s", comic.state.session_id, error.message)
        return jsonify({"error": error.message, "view": comic.view()}), status

    def run_action(comic: ComicSession, action: Callable[[], object]):
        if not comic.state.is_busy:
            comic.state.dismiss_error()
        try:
            result = action()
        except StudioError as e:
            return failure(comic, e)
        except KeyError:
            return not_found("Painel não encontrado.")
        return jsonify({"result": result, "view": comic.view()})

    @app.route("/")
    def index():
        """Serve the main page."""
        return render_template("index.html")

    @app.route("/api/session", methods=["POST"])
    def create_session():
        evict_sessions()
        comic = ComicSession(config, gateway_factory)
        with sessions_lock:
            sessions[comic.state.session_id] = comic
        return jsonify({"session_id": comic.state.session_id, "view": comic.view()}), 201

    @app.route("/api/session/<session_id>")
    def get_view(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        return jsonify({"view": comic.view()})

    @app.route("/api/session/<session_id>", methods=["DELETE"])
    def delete_session(session_id: str):
        with sessions_lock:
            comic = sessions.get(session_id)
            if not comic:
                return not_found()
            if comic.state.is_busy:
                return jsonify({"error": SessionBusy.default_message}), 409
            del sessions[session_id]
        return jsonify({"result": True})

    @app.route("/api/session/<session_id>/panels/<panel_id>/image")
    def panel_image(session_id: str, panel_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        with comic.state.lock:
            if not comic.state.panels.contains(panel_id):
                return not_found("Painel não encontrado.")
            image_url = comic.state.panels.get(panel_id).image_url
        try:
            mime_type, data = split_data_url(image_url)
        except ValueError:
            logger.error("Stored artwork for panel %s is not a data URL", panel_id)
            return not_found("Imagem não encontrada.")
        response = send_file(io.BytesIO(data), mimetype=mime_type)
        # URLs are versioned by image content
        response.cache_control.max_age = 86400
        return response

    @app.route("/api/session/<session_id>/start", methods=["POST"])
    def start_story(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        prompt = _text_field(_json_body(), "prompt")
        return run_action(comic, lambda: comic.controller.start_story(comic.state, prompt).panel.id)

    @app.route("/api/session/<session_id>/continue", methods=["POST"])
    def continue_story(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        prompt = _text_field(_json_body(), "prompt")
        return run_action(comic, lambda: comic.controller.continue_story(comic.state, prompt).panel.id)

    @app.route("/api/session/<session_id>/suggest", methods=["POST"])
    def suggest(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        return run_action(comic, lambda: comic.controller.suggest_continuation(comic.state))

    @app.route("/api/session/<session_id>/redo/open", methods=["POST"])
    def open_redo(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        panel_id = _json_body().get("panel_id", "")
        return run_action(comic, lambda: comic.state.open_redo(panel_id).model_dump())

    @app.route("/api/session/<session_id>/redo/cancel", methods=["POST"])
    def cancel_redo(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        comic.state.cancel_redo()
        return jsonify({"result": None, "view": comic.view()})

    @app.route("/api/session/<session_id>/redo", methods=["POST"])
    def redo_panel(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        data = _json_body()
        pending = comic.state.pending_redo
        panel_id = data.get("panel_id") or (pending.target_panel_id if pending else None)
        prompt = _text_field(data, "prompt")

        def action():
            if not panel_id:
                raise ValidationError("Escolha um painel para refazer.")
            return comic.controller.redo_panel(comic.state, panel_id, prompt).panel.id

        return run_action(comic, action)

    @app.route("/api/session/<session_id>/panels/<panel_id>/text", methods=["POST"])
    def edit_text(session_id: str, panel_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        text = _json_body().get("text", "")

        def action():
            if not isinstance(text, str):
                raise ValidationError("Texto do painel inválido.")
            with comic.state.lock:
                return comic.state.panels.edit_text(panel_id, text)

        return run_action(comic, action)

    @app.route("/api/session/<session_id>/restart", methods=["POST"])
    def restart(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        confirmed = _json_body().get("confirm") is True
        if not comic.state.restart(confirmed):
            return jsonify({"confirmation_required": True, "view": comic.view()})
        return jsonify({"result": True, "view": comic.view()})

    @app.route("/api/session/<session_id>/error/dismiss", methods=["POST"])
    def dismiss_error(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        comic.state.dismiss_error()
        return jsonify({"result": None, "view": comic.view()})

    @app.route("/api/session/<session_id>/export.pdf")
    def export_pdf(session_id: str):
        comic = get_session(session_id)
        if not comic:
            return not_found()
        try:
            with comic.state.busy("export"):
                comic.state.dismiss_error()
                pdf_bytes = comic.exporter.export(comic.state.panels.panels)
        except StudioError as e:
            return failure(comic, e)

        return send_file(
            io.BytesIO(pdf_bytes),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=config.export_filename,
        )

    return app

