"""Render worker: strategies per work kind and the task processor."""

from clipflow.render.processor import RenderProcessor
from clipflow.render.simulated import SimulatedMediaBackend
from clipflow.render.strategies import (
    MediaProcessingError,
    StrategyRegistrationError,
    StrategyRegistry,
    UnknownWorkKindError,
    build_default_registry,
)

__all__ = [
    "MediaProcessingError",
    "RenderProcessor",
    "SimulatedMediaBackend",
    "StrategyRegistrationError",
    "StrategyRegistry",
    "UnknownWorkKindError",
    "build_default_registry",
]
