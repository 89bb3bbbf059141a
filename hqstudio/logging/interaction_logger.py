"""Interaction logger for model prompts and responses.

Captures every call the generation gateway makes (panel scripts, panel
artwork and continuation suggestions) in a JSON file per session so the
prompts that produced a strip can be reviewed afterwards.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


class InteractionLogger:
    """Logs all model interactions of one studio session.

    Attributes:
        session_id: Timestamp identifier for this session.
        log_dir: Directory where log files are saved.
        log_file: Path to this session's log file.
        interactions: Everything logged so far, in order.
    """

    def __init__(self, label: str = "hq", log_dir: str | Path = "logs"):
        """Create the log directory and write the session header.

        Args:
            label: Short label used in the filename.
            log_dir: Directory to save log files (created if missing).
        """
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        safe_label = "".join(c if c.isalnum() or c in ("-", "_") else "_" for c in label)[:50]
        self.log_file = self.log_dir / f"{safe_label}_{self.session_id}.json"
        self.interactions: List[Dict[str, Any]] = []

        self._write({
            "session_id": self.session_id,
            "label": label,
            "start_time": datetime.now().isoformat(),
            "interactions": [],
        })

    def log_script_generation(
        self,
        system_prompt: str,
        user_message: str,
        response: Optional[str],
        parsed_response: Optional[Dict[str, Any]] = None,
        model: str = "",
        temperature: float = 0.0,
        max_tokens: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        """Log a panel script request."""
        self._append_interaction({
            "type": "script_generation",
            "timestamp": datetime.now().isoformat(),
            "model": model,
            "parameters": {"temperature": temperature, "max_tokens": max_tokens},
            "prompt": {"system": system_prompt, "user": user_message},
            "response": {"raw": response, "parsed": parsed_response},
            "success": error_message is None,
            "error": error_message,
        })

    def log_image_generation(
        self,
        prompt: str,
        model: str = "",
        size: str = "",
        quality: str = "",
        image_count: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        """Log an artwork request. Image bytes are never written to the log."""
        self._append_interaction({
            "type": "image_generation",
            "timestamp": datetime.now().isoformat(),
            "model": model,
            "parameters": {"size": size, "quality": quality},
            "prompt": prompt,
            "result": {
                "success": error_message is None,
                "image_count": image_count,
                "error": error_message,
            },
        })

    def log_suggestion(
        self,
        system_prompt: str,
        user_message: str,
        response: Optional[str],
        model: str = "",
        error_message: Optional[str] = None,
    ) -> None:
        """Log a continuation suggestion request."""
        self._append_interaction({
            "type": "suggestion",
            "timestamp": datetime.now().isoformat(),
            "model": model,
            "prompt": {"system": system_prompt, "user": user_message},
            "response": response,
            "success": error_message is None,
            "error": error_message,
        })

    def _write(self, data: Dict[str, Any]) -> None:
        with open(self.log_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _append_interaction(self, interaction: Dict[str, Any]) -> None:
        self.interactions.append(interaction)

        try:
            with open(self.log_file, "r", encoding="utf-8") as f:
                log_data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            log_data = {
                "session_id": self.session_id,
                "start_time": datetime.now().isoformat(),
                "interactions": [],
            }

        log_data["interactions"].append(interaction)
        self._write(log_data)

    def get_log_path(self) -> str:
        """Absolute path to the current log file."""
        return str(self.log_file.resolve())

    def get_interaction_count(self) -> int:
        return len(self.interactions)
