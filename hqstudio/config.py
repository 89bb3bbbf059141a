"""Central configuration for all technical settings.

Model parameters, export strings and paths are defined here as module-level
defaults. ``StudioConfig`` carries them at runtime and can pick up overrides
from the environment (``HQ_*`` variables, usually set in a ``.env`` file).
"""

import os

from pydantic import BaseModel, Field

# =============================================================================
# LLM Settings (script + suggestions)
# =============================================================================
LLM_MODEL = "gpt-4o-mini"
SUGGEST_MODEL = "gpt-4o-mini"
LLM_TEMPERATURE = 0.8
LLM_MAX_TOKENS = 800

# =============================================================================
# Image Generation Settings
# =============================================================================
IMAGE_MODEL = "gpt-image-1-mini"  # Alternative: "dall-e-3"
IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "medium"  # Options: "low", "medium", "high"
REQUEST_TIMEOUT = 120.0

# =============================================================================
# Panel Text
# =============================================================================
NARRATION_MARKER = "NARRAÇÃO"

# =============================================================================
# PDF Export
# =============================================================================
EXPORT_TITLE = "Gerador de HQs Michel Douglas Online"
EXPORT_FOOTER = "Desenvolvido por Michel Douglas Dos Santos"
EXPORT_FILENAME = "minha-hq-epica.pdf"
EXPORT_MARGIN = 50

# =============================================================================
# Web Sessions
# =============================================================================
SESSION_TTL = 3600.0  # seconds without a request before a session is dropped
MAX_SESSIONS = 50

# =============================================================================
# Output Directories
# =============================================================================
LOG_DIR = "logs"


class StudioConfig(BaseModel):
    """Runtime settings shared by the gateway, controller and exporter."""

    llm_model: str = Field(default=LLM_MODEL, description="Model used for panel scripts")
    suggest_model: str = Field(default=SUGGEST_MODEL, description="Model used for continuation ideas")
    llm_temperature: float = Field(default=LLM_TEMPERATURE)
    llm_max_tokens: int = Field(default=LLM_MAX_TOKENS)
    image_model: str = Field(default=IMAGE_MODEL)
    image_size: str = Field(default=IMAGE_SIZE)
    image_quality: str = Field(default=IMAGE_QUALITY)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, description="Seconds before a model call is abandoned")
    narration_marker: str = Field(default=NARRATION_MARKER)
    export_title: str = Field(default=EXPORT_TITLE)
    export_footer: str = Field(default=EXPORT_FOOTER)
    export_filename: str = Field(default=EXPORT_FILENAME)
    export_margin: int = Field(default=EXPORT_MARGIN)
    session_ttl: float = Field(default=SESSION_TTL, description="Idle seconds before a session is evicted")
    max_sessions: int = Field(default=MAX_SESSIONS, description="Sessions kept in memory at most")
    log_dir: str | None = Field(default=LOG_DIR, description="Interaction log directory, None disables it")
    api_key: str | None = Field(default=None, repr=False)
    use_mock: bool = Field(default=False, description="Use the offline gateway instead of OpenAI")

    @classmethod
    def from_env(cls, **overrides) -> "StudioConfig":
        """Build a config from defaults, ``HQ_*`` environment variables and overrides.

        Call ``load_dotenv()`` first if the values live in a ``.env`` file.
        """
        values = {}
        for name, field in cls.model_fields.items():
            if name == "api_key":
                continue
            raw = os.getenv(f"HQ_{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                values[name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[name] = raw

        values["api_key"] = os.getenv("OPENAI_API_KEY") or None
        values.update(overrides)
        return cls(**values)
