"""Audio-reactive 3D particle cloud engine."""

from sonosphere.core.settings import Settings
from sonosphere.engine import EngineConfig, FrameInput, FrameOutput, ParticleEngine, create_state, tick
from sonosphere.shapes import SHAPE_ORDER, ShapeKind, generate

__version__ = "0.1.0"
__all__ = [
    "Settings",
    "EngineConfig",
    "FrameInput",
    "FrameOutput",
    "ParticleEngine",
    "create_state",
    "tick",
    "SHAPE_ORDER",
    "ShapeKind",
    "generate",
]
