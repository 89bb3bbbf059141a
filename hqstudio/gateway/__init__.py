"""Generation gateways: OpenAI-backed and offline."""

from typing import Optional

from ..config import StudioConfig
from ..logging.interaction_logger import InteractionLogger
from .base import GeneratedImage, GenerationGateway, ScriptData, sniff_mime_type
from .mock_gateway import MockGateway
from .openai_gateway import OpenAIGateway


def create_gateway(
    config: StudioConfig,
    interaction_logger: Optional[InteractionLogger] = None,
) -> GenerationGateway:
    """Pick the real gateway when an API key is configured, the mock otherwise."""
    if config.use_mock or not config.api_key:
        return MockGateway()
    return OpenAIGateway(config=config, interaction_logger=interaction_logger)


__all__ = [
    "GeneratedImage",
    "GenerationGateway",
    "MockGateway",
    "OpenAIGateway",
    "ScriptData",
    "create_gateway",
    "sniff_mime_type",
]
