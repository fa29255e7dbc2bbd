"""
Scatter/gather and shape-morph progress tracking.

Two independent progress scalars move towards a target by a fixed step per
tick and are eased with a cubic in/out curve before use:

- ``gather``: 0 = scattered through the basin, 1 = gathered into the shape.
- ``morph``: 0 = previous shape, 1 = current shape.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

ASSUMED_FPS = 60
SNAPSHOT_THRESHOLD = 0.99
_SNAP_EPS = 1e-9

TIMING_MODES = ("delta", "fixed")
SNAPSHOT_POLICIES = ("completed", "blended")


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in/ease-out on ``[0, 1]``."""
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - (-2.0 * t + 2.0) ** 3 / 2.0


def step_size(duration: float, delta: float, timing: str = "delta", fps: int = ASSUMED_FPS) -> float:
    """
    Progress step for one tick.

    Args:
        duration: Transition length in seconds.
        delta: Seconds since the previous tick (ignored in fixed timing).
        timing: ``"delta"`` scales by elapsed time, ``"fixed"`` assumes
            ``fps`` ticks per second.
        fps: Assumed tick rate for fixed timing.
    """
    duration = max(float(duration), 1e-6)
    if timing == "fixed":
        return 1.0 / (duration * fps)
    if timing == "delta":
        return max(float(delta), 0.0) / duration
    raise ValueError(f"Unknown timing mode {timing!r} (expected one of: {', '.join(TIMING_MODES)})")


def _approach(value: float, target: float, step: float) -> float:
    if value < target:
        value = min(value + step, target)
    elif value > target:
        value = max(value - step, target)
    if abs(value - target) < _SNAP_EPS:
        value = target
    return value


@dataclass(frozen=True)
class TransitionState:
    """Gather and morph progress plus the previous-shape snapshot."""

    gather: float = 0.0
    morph: float = 1.0
    previous: Optional[np.ndarray] = None

    @property
    def gather_eased(self) -> float:
        return ease_in_out_cubic(self.gather)

    @property
    def morph_eased(self) -> float:
        return ease_in_out_cubic(self.morph)

    @property
    def morphing(self) -> bool:
        """True while a blend from the previous snapshot is in flight."""
        return self.previous is not None and self.morph < 1.0


def advance_gather(state: TransitionState, activated: bool, step: float) -> TransitionState:
    """Step gather progress towards 1 when activated, towards 0 otherwise."""
    target = 1.0 if activated else 0.0
    return replace(state, gather=_approach(state.gather, target, step))


def advance_morph(state: TransitionState, step: float) -> TransitionState:
    """Step morph progress towards 1 and hold there."""
    return replace(state, morph=_approach(state.morph, 1.0, step))


def morph_targets(state: TransitionState, current: np.ndarray) -> np.ndarray:
    """
    Shape targets for this tick.

    While a morph is in flight the previous snapshot is blended into
    ``current`` by the eased morph progress; otherwise ``current`` is
    returned unchanged.
    """
    if not state.morphing:
        return current
    prev = state.previous
    return prev + (current - prev) * np.float32(state.morph_eased)


def begin_morph(state: TransitionState, outgoing: np.ndarray, policy: str = "completed") -> TransitionState:
    """
    Restart the morph after a shape change.

    Args:
        state: Current transition state.
        outgoing: Target point set of the shape being left.
        policy: ``"completed"`` snapshots ``outgoing`` only when the prior
            morph had reached 0.99 and otherwise keeps the older snapshot;
            ``"blended"`` snapshots whatever blend is currently displayed.

    Returns:
        New state with morph progress reset to 0.
    """
    if policy not in SNAPSHOT_POLICIES:
        raise ValueError(
            f"Unknown morph snapshot policy {policy!r} "
            f"(expected one of: {', '.join(SNAPSHOT_POLICIES)})"
        )
    previous = state.previous
    if state.morph >= SNAPSHOT_THRESHOLD:
        previous = np.array(outgoing, dtype=np.float32, copy=True)
    elif policy == "blended":
        previous = np.array(morph_targets(state, outgoing), dtype=np.float32, copy=True)
    return replace(state, morph=0.0, previous=previous)
