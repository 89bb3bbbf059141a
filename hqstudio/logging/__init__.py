"""Model interaction logging."""

from .interaction_logger import InteractionLogger

__all__ = ["InteractionLogger"]
