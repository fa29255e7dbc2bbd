"""
Procedural point-set generators.

Every generator maps ``(count, radius)`` to a flat float32 array of length
``3 * count`` laid out as ``x0, y0, z0, x1, y1, z1, ...``. Stochastic shapes
draw from an injected ``numpy.random.Generator`` so runs can be seeded.
"""

import enum
import math
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

import numpy as np

DEFAULT_RADIUS = 5.0
GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


class ShapeKind(str, enum.Enum):
    """Closed set of motifs the particle cloud can gather into."""
    SPHERE = "sphere"
    CUBE = "cube"
    PYRAMID = "pyramid"
    FLOWER = "flower"
    DNA = "dna"
    SPIRAL = "spiral"
    SHELL = "shell"
    MOBIUS = "mobius"
    TREE = "tree"

    @classmethod
    def parse(cls, value) -> "ShapeKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown shape {value!r} (expected one of: {names})") from None


# Cyclic order used by auto-advance and manual "next" stepping.
SHAPE_ORDER: Tuple[ShapeKind, ...] = tuple(ShapeKind)


def next_shape(kind: ShapeKind) -> ShapeKind:
    """Return the shape after ``kind`` in the fixed cyclic order."""
    idx = SHAPE_ORDER.index(ShapeKind.parse(kind))
    return SHAPE_ORDER[(idx + 1) % len(SHAPE_ORDER)]


def resolve_radius(radius: Optional[float]) -> float:
    """Missing or non-positive radii fall back to ``DEFAULT_RADIUS``."""
    if radius is None or not radius > 0:
        return DEFAULT_RADIUS
    return float(radius)


def _check_count(count: int) -> int:
    count = int(count)
    if count <= 0:
        raise ValueError(f"Point count must be positive, got {count}")
    return count


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _flatten(x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
    return np.stack([x, y, z], axis=1).astype(np.float32).ravel()


# ---------------------------------------------------------------------------
# Shape generators
# ---------------------------------------------------------------------------

def fibonacci_sphere(count: int, radius: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Evenly spread points on a sphere using the golden-angle lattice.

    Deterministic: ``rng`` is accepted for a uniform signature and ignored.
    """
    count = _check_count(count)
    i = np.arange(count, dtype=np.float64)
    y = 1.0 - (i / max(count - 1, 1)) * 2.0
    r = np.sqrt(np.clip(1.0 - y * y, 0.0, None))
    theta = GOLDEN_ANGLE * i
    return _flatten(np.cos(theta) * r * radius, y * radius, np.sin(theta) * r * radius)


def cube_points(count: int, radius: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Uniform points on the six faces of a cube with half-size ``radius``."""
    count = _check_count(count)
    rng = _rng(rng)
    face = rng.integers(0, 6, size=count)
    u = (rng.random(count) * 2.0 - 1.0) * radius
    v = (rng.random(count) * 2.0 - 1.0) * radius

    # Face k pins axis k // 2 to +radius (even k) or -radius (odd k).
    axis = face // 2
    sign = np.where(face % 2 == 0, 1.0, -1.0) * radius
    pts = np.empty((count, 3), dtype=np.float64)
    pts[:, 0] = np.where(axis == 0, sign, u)
    pts[:, 1] = np.where(axis == 0, u, np.where(axis == 1, sign, v))
    pts[:, 2] = np.where(axis == 2, sign, v)
    return pts.astype(np.float32).ravel()


def pyramid_points(count: int, radius: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Area-uniform points on the four slanted faces of a square pyramid."""
    count = _check_count(count)
    rng = _rng(rng)
    h = radius
    apex = (0.0, h, 0.0)
    faces = np.array([
        [(-h, -h, h), (h, -h, h), apex],    # front
        [(h, -h, h), (h, -h, -h), apex],    # right
        [(h, -h, -h), (-h, -h, -h), apex],  # back
        [(-h, -h, -h), (-h, -h, h), apex],  # left
    ], dtype=np.float64)

    face = rng.integers(0, 4, size=count)
    sqrt_t1 = np.sqrt(rng.random(count))
    t2 = rng.random(count)
    a = 1.0 - sqrt_t1
    b = sqrt_t1 * (1.0 - t2)
    c = sqrt_t1 * t2

    tri = faces[face]  # (count, 3 vertices, 3)
    pts = tri[:, 0] * a[:, None] + tri[:, 1] * b[:, None] + tri[:, 2] * c[:, None]
    return pts.astype(np.float32).ravel()


def flower_points(
    count: int,
    radius: float,
    rng: Optional[np.random.Generator] = None,
    petals: int = 8,
    layers: int = 8,
) -> np.ndarray:
    """
    Layered petals with a seeded core.

    Particles are binned into ``petals x layers``; the petal radius is
    modulated by two harmonics of the petal angle and each layer sits higher
    and curls further. About 30% of the two innermost layers are pulled into
    a small disc that fills the centre.
    """
    count = _check_count(count)
    rng = _rng(rng)
    i = np.arange(count)
    petal = i % petals
    layer = (i // petals) % layers

    angle = petal / petals * 2.0 * math.pi
    layer_radius = radius * (0.2 + layer * 0.1)
    petal_length = radius * 0.7
    phase = layer / layers
    petal_angle = angle + np.sin(phase * 2.0 * math.pi) * 0.4

    wave = np.cos(petal_angle * 3.0) * 0.2 + np.sin(petal_angle * 5.0) * 0.1
    r = layer_radius + (wave + 1.0) * petal_length * (0.3 + phase * 0.4)

    x = np.cos(angle) * r
    z = np.sin(angle) * r
    curl = np.sin(phase * math.pi) * radius * 0.4
    y = (phase - 0.5) * radius * 0.8 + curl

    core = (layer < 2) & (rng.random(count) > 0.7)
    n_core = int(core.sum())
    if n_core:
        core_r = radius * 0.15 * rng.random(n_core)
        core_angle = rng.random(n_core) * 2.0 * math.pi
        x[core] = np.cos(core_angle) * core_r
        y[core] = (rng.random(n_core) - 0.5) * radius * 0.1
        z[core] = np.sin(core_angle) * core_r

    return _flatten(x, y, z)


def dna_points(
    count: int,
    radius: float,
    rng: Optional[np.random.Generator] = None,
    turns: int = 4,
) -> np.ndarray:
    """Double helix with random rungs on every 20th particle."""
    count = _check_count(count)
    rng = _rng(rng)
    i = np.arange(count)
    t = i / count - 0.5
    angle = t * 2.0 * math.pi * turns
    # Odd particles belong to the second strand, half a turn out of phase.
    angle = np.where(i % 2 == 0, angle, angle + math.pi)

    x = np.cos(angle) * radius
    y = t * radius * 4.0
    z = np.sin(angle) * radius

    rung = i % 20 == 0
    n_rung = int(rung.sum())
    x[rung] = (rng.random(n_rung) - 0.5) * radius * 0.5
    z[rung] = (rng.random(n_rung) - 0.5) * radius * 0.5
    return _flatten(x, y, z)


def spiral_points(
    count: int,
    radius: float,
    rng: Optional[np.random.Generator] = None,
    arms: int = 5,
    turns: float = 2.0,
    arm_spread: float = 0.5,
) -> np.ndarray:
    """Multi-armed galaxy whose arms widen and thicken towards the rim."""
    count = _check_count(count)
    rng = _rng(rng)
    i = np.arange(count)
    t = i / count

    base_angle = (i % arms) / arms * 2.0 * math.pi
    spiral_angle = base_angle + t * 2.0 * math.pi * turns
    r = t * radius

    spread_angle = (rng.random(count) - 0.5) * arm_spread
    spread_radius = (rng.random(count) - 0.5) * radius * 0.15 * t

    x = np.cos(spiral_angle + spread_angle) * (r + spread_radius)
    z = np.sin(spiral_angle + spread_angle) * (r + spread_radius)
    y = (rng.random(count) - 0.5) * radius * 0.1
    return _flatten(x, y, z)


def shell_points(
    count: int,
    radius: float,
    rng: Optional[np.random.Generator] = None,
    rings: int = 3,
) -> np.ndarray:
    """
    Concentric "sonic" rings, one per band.

    Particles left over after an even split go to the outermost ring.
    """
    count = _check_count(count)
    rng = _rng(rng)
    per_ring = count // rings
    ring = np.minimum(np.arange(count) // max(per_ring, 1), rings - 1)
    if per_ring == 0:
        ring[:] = rings - 1

    # Slot within the ring and the ring's population, for even angular spacing.
    start = ring * per_ring
    slot = np.arange(count) - start
    population = np.where(ring == rings - 1, count - per_ring * (rings - 1), per_ring)

    ring_radius = radius * (0.4 + ring * 0.35)
    angle = slot / population * 2.0 * math.pi
    thickness = rng.random(count) * ring_radius * 0.08

    x = np.cos(angle) * (ring_radius + thickness)
    z = np.sin(angle) * (ring_radius + thickness)
    y = (ring - 1) * radius * 0.25 + (rng.random(count) - 0.5) * radius * 0.05
    return _flatten(x, y, z)


def mobius_points(count: int, radius: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Half-twisted strip swept once around the loop. Deterministic."""
    count = _check_count(count)
    i = np.arange(count)
    u = i / count * 2.0 * math.pi
    v = ((i % 20) - 10) / 10.0
    width = radius * 0.4

    offset = width * v * np.cos(u / 2.0)
    x = (radius + offset) * np.cos(u)
    y = width * v * np.sin(u / 2.0)
    z = (radius + offset) * np.sin(u)
    return _flatten(x, y, z)


def tree_points(
    count: int,
    radius: float,
    rng: Optional[np.random.Generator] = None,
    max_depth: int = 5,
    branch_angle: float = 0.5,
    length_scale: float = 0.7,
) -> np.ndarray:
    """
    Binary fractal tree grown upward from ``(0, -radius, 0)``.

    Each branch gets an equal slice of the budget (63 branches at the default
    depth); whatever is left is scattered in the tree's bounding box.
    """
    count = _check_count(count)
    rng = _rng(rng)
    pts = np.zeros((count, 3), dtype=np.float64)
    n_branches = 2 ** (max_depth + 1) - 1
    per_branch = max(1, count // n_branches)
    index = 0

    def add_branch(ox: float, oy: float, oz: float, length: float, angle: float, depth: int):
        nonlocal index
        if depth > max_depth or index >= count:
            return
        ex = ox + math.sin(angle) * length
        ey = oy + math.cos(angle) * length

        n = min(per_branch, count - index)
        t = np.arange(n) / per_branch
        pts[index:index + n, 0] = ox + (ex - ox) * t
        pts[index:index + n, 1] = oy + (ey - oy) * t
        pts[index:index + n, 2] = oz + (rng.random(n) - 0.5) * radius * 0.1
        index += n

        child = length * length_scale
        add_branch(ex, ey, oz, child, angle + branch_angle, depth + 1)
        add_branch(ex, ey, oz, child, angle - branch_angle, depth + 1)

    add_branch(0.0, -radius, 0.0, radius * 0.5, 0.0, 0)

    rest = count - index
    if rest:
        pts[index:, 0] = (rng.random(rest) - 0.5) * radius
        pts[index:, 1] = (rng.random(rest) - 0.5) * radius * 2.0
        pts[index:, 2] = (rng.random(rest) - 0.5) * radius
    return pts.astype(np.float32).ravel()


GENERATORS: Dict[ShapeKind, Callable[..., np.ndarray]] = {
    ShapeKind.SPHERE: fibonacci_sphere,
    ShapeKind.CUBE: cube_points,
    ShapeKind.PYRAMID: pyramid_points,
    ShapeKind.FLOWER: flower_points,
    ShapeKind.DNA: dna_points,
    ShapeKind.SPIRAL: spiral_points,
    ShapeKind.SHELL: shell_points,
    ShapeKind.MOBIUS: mobius_points,
    ShapeKind.TREE: tree_points,
}


def generate(
    kind,
    count: int,
    radius: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generate the point set for ``kind``.

    Args:
        kind: A ``ShapeKind`` or its string value.
        count: Number of points (must be positive).
        radius: Shape scale; ``None`` or ``<= 0`` falls back to 5.0.
        rng: Random source for stochastic shapes.

    Returns:
        Flat float32 array of length ``3 * count``.
    """
    generator = GENERATORS[ShapeKind.parse(kind)]
    return generator(count, resolve_radius(radius), rng)


# ---------------------------------------------------------------------------
# Session-fixed point sets
# ---------------------------------------------------------------------------

def scatter_points(count: int, size: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Uniform points in an axis-aligned cube of side ``size`` centred on the origin."""
    count = _check_count(count)
    rng = _rng(rng)
    return ((rng.random(count * 3) - 0.5) * size).astype(np.float32)


def dust_shell_points(
    count: int,
    rng: Optional[np.random.Generator] = None,
    inner: float = 20.0,
    outer: float = 60.0,
) -> np.ndarray:
    """Isotropic directions at distances uniform in ``[inner, outer)``."""
    count = _check_count(count)
    rng = _rng(rng)
    r = inner + rng.random(count) * (outer - inner)
    theta = rng.random(count) * 2.0 * math.pi
    phi = np.arccos(2.0 * rng.random(count) - 1.0)
    return _flatten(
        r * np.sin(phi) * np.cos(theta),
        r * np.sin(phi) * np.sin(theta),
        r * np.cos(phi),
    )


class ShapeCache:
    """
    Memoises generated point sets by ``(shape, radius)``.

    Entries are read-only; the least recently used entry is evicted once
    ``maxsize`` is exceeded.
    """

    def __init__(self, count: int, rng: Optional[np.random.Generator] = None, maxsize: int = 32):
        self.count = _check_count(count)
        self.rng = _rng(rng)
        self.maxsize = maxsize
        self._entries: "OrderedDict[Tuple[ShapeKind, float], np.ndarray]" = OrderedDict()

    def get(self, kind, radius: Optional[float]) -> np.ndarray:
        key = (ShapeKind.parse(kind), resolve_radius(radius))
        points = self._entries.get(key)
        if points is None:
            points = generate(key[0], self.count, key[1], self.rng)
            points.flags.writeable = False
            self._entries[key] = points
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
        else:
            self._entries.move_to_end(key)
        return points

    def __contains__(self, key) -> bool:
        kind, radius = key
        return (ShapeKind.parse(kind), resolve_radius(radius)) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
