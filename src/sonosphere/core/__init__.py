"""Core per-frame signal and state modules."""

from sonosphere.core.bands import BandEnergy, BandSmoother, extract_bands
from sonosphere.core.scheduler import AutoShapeScheduler
from sonosphere.core.settings import Settings, load_settings
from sonosphere.core.transition import TransitionState, ease_in_out_cubic

__all__ = [
    "BandEnergy",
    "BandSmoother",
    "extract_bands",
    "AutoShapeScheduler",
    "Settings",
    "load_settings",
    "TransitionState",
    "ease_in_out_cubic",
]
