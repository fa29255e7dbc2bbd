"""Timer that walks the active shape through the fixed cyclic order."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from sonosphere.shapes import ShapeKind, next_shape


@dataclass(frozen=True)
class AutoShapeScheduler:
    """
    Accumulates elapsed time while enabled and active.

    When the accumulator reaches the interval the next shape is requested and
    the accumulator restarts from zero. Disabled or inactive ticks hold it at
    zero, so re-enabling never carries over a partial interval.
    """

    elapsed: float = 0.0

    def advance(
        self,
        delta: float,
        enabled: bool,
        active: bool,
        interval: float,
        current: ShapeKind,
    ) -> Tuple["AutoShapeScheduler", Optional[ShapeKind]]:
        """Return the updated scheduler and the requested shape, if any."""
        if not (enabled and active):
            return replace(self, elapsed=0.0), None
        elapsed = self.elapsed + max(float(delta), 0.0)
        if elapsed >= interval:
            return replace(self, elapsed=0.0), next_shape(current)
        return replace(self, elapsed=elapsed), None
