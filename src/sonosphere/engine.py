"""
Audio-reactive particle engine.

The whole per-frame update is one pure step::

    new_state, output = tick(state, frame, settings)

``EngineState`` carries everything that persists between frames (smoothed
bands, transition progress, simulated time, rotations, the scatter basin and
the shape cache). ``ParticleEngine`` wraps the step for host loops that pull
spectra from an audio source.

Per-tick order:
  1. auto-shape scheduler
  2. simulated time
  3. shape-change detection -> morph restart
  4. morph / gather progress
  5. band extraction + smoothing
  6. camera jitter, rotation
  7. per-particle positions
  8. main and dust materials
"""

from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Tuple

import noise
import numpy as np

from sonosphere.core.bands import SILENCE, BandEnergy, BandSmoother, extract_bands
from sonosphere.core.material import MaterialParams, main_material
from sonosphere.core.scheduler import AutoShapeScheduler
from sonosphere.core.settings import Settings
from sonosphere.core.transition import (
    ASSUMED_FPS,
    SNAPSHOT_POLICIES,
    TIMING_MODES,
    TransitionState,
    advance_gather,
    advance_morph,
    begin_morph,
    morph_targets,
    step_size,
)
from sonosphere.effects import AmbientDustLayer, CameraJitter
from sonosphere.shapes import (
    ShapeCache,
    ShapeKind,
    dust_shell_points,
    next_shape,
    resolve_radius,
    scatter_points,
)

SPECTRUM_BINS = 1024

Vec3 = Tuple[float, float, float]


@dataclass
class EngineConfig:
    """Session-level configuration; fixed for the lifetime of an engine."""
    particle_count: int = 4000
    dust_count: int = 800
    scatter_size: float = 60.0
    fps: int = 60  # host tick rate; ParticleEngine.run uses 1/fps as delta

    # "delta" derives steps from elapsed time, "fixed" assumes 60 ticks/s
    timing: str = "delta"
    # "completed" or "blended", see begin_morph()
    morph_snapshot: str = "completed"

    cache_size: int = 32
    interaction_radius: float = 7.0

    def __post_init__(self):
        if self.particle_count <= 0:
            raise ValueError(f"particle_count must be positive, got {self.particle_count}")
        if self.dust_count <= 0:
            raise ValueError(f"dust_count must be positive, got {self.dust_count}")
        if self.timing not in TIMING_MODES:
            raise ValueError(f"Unknown timing mode {self.timing!r}")
        if self.morph_snapshot not in SNAPSHOT_POLICIES:
            raise ValueError(f"Unknown morph snapshot policy {self.morph_snapshot!r}")


@dataclass(frozen=True)
class FrameInput:
    """What the host knows at the start of a tick."""
    delta: float = 1.0 / 60.0
    spectrum: Optional[np.ndarray] = None
    is_playing: bool = False
    has_been_activated: bool = False
    pointer: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class FrameOutput:
    """Everything the renderer needs for one frame."""
    frame_index: int
    time: float
    shape: ShapeKind
    shape_changed: bool
    requested_shape: Optional[ShapeKind]

    positions: np.ndarray       # (N, 3) float32, local space
    dust_positions: np.ndarray  # (M, 3) float32, fixed
    material: MaterialParams
    dust_material: MaterialParams

    rotation: Vec3
    rotation_delta: Vec3
    dust_rotation: Vec3
    group_offset: Vec3

    bands: BandEnergy
    smoothed: BandEnergy
    gather: float
    gather_eased: float
    morph: float
    morph_eased: float
    bloom_strength: float


@dataclass(frozen=True)
class EngineState:
    config: EngineConfig
    rng: np.random.Generator
    cache: ShapeCache
    scatter: np.ndarray
    dust: np.ndarray

    frame_index: int = 0
    time: float = 0.0
    shape: ShapeKind = ShapeKind.SPHERE
    observed_shape: ShapeKind = ShapeKind.SPHERE
    smoothed: BandEnergy = SILENCE
    transition: TransitionState = field(default_factory=TransitionState)
    scheduler: AutoShapeScheduler = field(default_factory=AutoShapeScheduler)
    jitter: CameraJitter = field(default_factory=CameraJitter)
    dust_layer: AmbientDustLayer = field(default_factory=AmbientDustLayer)
    rotation: Vec3 = (0.0, 0.0, 0.0)


def create_state(
    config: Optional[EngineConfig] = None,
    settings: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> EngineState:
    """Fresh session state: scattered, silent, showing the configured shape."""
    cfg = config or EngineConfig()
    settings = settings or Settings()
    rng = np.random.default_rng(seed)
    shape = settings.visual_shape
    return EngineState(
        config=cfg,
        rng=rng,
        cache=ShapeCache(cfg.particle_count, rng, maxsize=cfg.cache_size),
        scatter=scatter_points(cfg.particle_count, cfg.scatter_size, rng),
        dust=dust_shell_points(cfg.dust_count, rng),
        shape=shape,
        observed_shape=shape,
    )


def _snoise3(x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
    """Element-wise 3D simplex noise (``noise.snoise3`` is scalar-only)."""
    return np.fromiter(
        (noise.snoise3(a, b, c) for a, b, c in zip(x.tolist(), y.tolist(), z.tolist())),
        dtype=np.float64,
        count=len(x),
    )


def update_particles(
    scatter: np.ndarray,
    targets: np.ndarray,
    progress: float,
    bands: BandEnergy,
    time: float,
    settings: Settings,
    rng: np.random.Generator,
    pointer: Optional[Tuple[float, float]] = None,
    interaction_radius: float = 7.0,
) -> np.ndarray:
    """
    Final particle positions for one tick.

    Args:
        scatter: Flat scatter-basin coordinates.
        targets: Flat shape targets (already morph-blended).
        progress: Eased gather progress.
        bands: Smoothed band energies.
        time: Simulated time.
        settings: Current settings.
        rng: Random source for high-band spikes.
        pointer: Pointer position in the XY plane, if any.
        interaction_radius: Pointer repulsion radius.

    Returns:
        (N, 3) float32 positions.
    """
    s = scatter.reshape(-1, 3).astype(np.float64)
    t = targets.reshape(-1, 3).astype(np.float64)
    base = s + (t - s) * progress

    # Pointer repulsion while still scattered
    if pointer is not None and progress < 0.9:
        dx = base[:, 0] - pointer[0]
        dy = base[:, 1] - pointer[1]
        dist_sq = dx * dx + dy * dy
        near = dist_sq < interaction_radius * interaction_radius
        if np.any(near):
            dist = np.sqrt(dist_sq[near])
            force = (interaction_radius - dist) / interaction_radius
            strength = 2.0 * (1.0 - progress)
            angle = np.arctan2(dy[near], dx[near])
            base[near, 0] += np.cos(angle) * force * strength
            base[near, 1] += np.sin(angle) * force * strength

    length = np.linalg.norm(base, axis=1)
    safe = np.where(length > 0, length, 1.0)
    direction = np.where(length[:, None] > 0, base / safe[:, None], 0.0)
    dist = length.copy()

    if progress > 0.01:
        if settings.enable_morphing:
            amp = 0.3 + bands.bass * settings.morphing_intensity
            freq = 0.3 + bands.mid * 1.5
            drift = time * 0.5
            n = _snoise3(
                direction[:, 0] * freq + drift,
                direction[:, 1] * freq + drift,
                direction[:, 2] * freq,
            )
            spike = 0.0
            if bands.high > 0.3:
                spike = np.where(rng.random(len(dist)) > 0.95, bands.high * 1.5, 0.0)
            dist += (n * amp + spike) * progress
        else:
            dist += bands.bass * settings.pulse_intensity * progress
    else:
        # Idle wobble so the scattered cloud is never static
        drift = time * 0.2
        n = _snoise3(base[:, 0] * 0.05 + drift, base[:, 1] * 0.05, base[:, 2] * 0.05)
        dist += n * 0.2

    return (direction * dist[:, None]).astype(np.float32)


def tick(state: EngineState, frame: FrameInput, settings: Settings) -> Tuple[EngineState, FrameOutput]:
    """Advance the engine by one frame."""
    cfg = state.config
    delta = max(float(frame.delta), 0.0)
    active = frame.has_been_activated

    # 1. Auto-advance
    scheduler, requested = state.scheduler.advance(
        delta,
        settings.auto_shape_switch,
        active,
        settings.auto_shape_interval,
        state.shape,
    )

    # 2. Simulated time; a speed of 0 freezes noise and rotation
    time = state.time + delta * settings.rotation_speed

    # 3. Shape change from the settings or the scheduler
    shape = state.shape
    observed = state.observed_shape
    if settings.visual_shape != observed:
        observed = settings.visual_shape
        shape = settings.visual_shape
    if requested is not None:
        shape = requested

    radius = resolve_radius(settings.sphere_radius)
    transition = state.transition
    shape_changed = shape != state.shape
    if shape_changed:
        outgoing = state.cache.get(state.shape, radius)
        transition = begin_morph(transition, outgoing, cfg.morph_snapshot)

    # 4. Progress
    transition = advance_morph(
        transition, step_size(settings.shape_transition_time, delta, cfg.timing)
    )
    transition = advance_gather(
        transition, active, step_size(settings.particle_reset_time, delta, cfg.timing)
    )
    progress = transition.gather_eased

    # 5. Audio
    if frame.is_playing or active:
        bands = extract_bands(frame.spectrum, settings.audio_sensitivity, settings.bass_boost)
    else:
        bands = SILENCE
    smoothed = BandSmoother().step(state.smoothed, bands)

    # 6. Camera jitter and rotation
    jitter = state.jitter.step(
        smoothed.bass,
        settings.enable_shake,
        active,
        settings.bass_threshold,
        settings.shake_intensity,
        state.rng,
    )
    frame_scale = delta * ASSUMED_FPS if cfg.timing == "delta" else 1.0
    spin = (0.05 + smoothed.bass * 0.1) * settings.rotation_speed * 0.01 * frame_scale
    rotation_delta = (0.0, spin, spin * 0.5)
    rotation = tuple(a + b for a, b in zip(state.rotation, rotation_delta))

    # 7. Particles
    targets = morph_targets(transition, state.cache.get(shape, radius))
    positions = update_particles(
        state.scatter,
        targets,
        progress,
        smoothed,
        time,
        settings,
        state.rng,
        frame.pointer,
        cfg.interaction_radius,
    )

    # 8. Materials
    material = main_material(
        settings.color_theme,
        smoothed.bass,
        progress,
        settings.particle_size,
        settings.use_high_quality_texture,
    )
    dust_layer, dust_material = state.dust_layer.step(
        time,
        transition.gather,
        smoothed.high,
        settings.color_theme,
        settings.particle_size,
        spin,
    )

    new_state = replace(
        state,
        frame_index=state.frame_index + 1,
        time=time,
        shape=shape,
        observed_shape=observed,
        smoothed=smoothed,
        transition=transition,
        scheduler=scheduler,
        jitter=jitter,
        dust_layer=dust_layer,
        rotation=rotation,
    )
    output = FrameOutput(
        frame_index=state.frame_index,
        time=time,
        shape=shape,
        shape_changed=shape_changed,
        requested_shape=requested,
        positions=positions,
        dust_positions=state.dust.reshape(-1, 3),
        material=material,
        dust_material=dust_material,
        rotation=rotation,
        rotation_delta=rotation_delta,
        dust_rotation=dust_layer.rotation,
        group_offset=jitter.offset,
        bands=bands,
        smoothed=smoothed,
        gather=transition.gather,
        gather_eased=progress,
        morph=transition.morph,
        morph_eased=transition.morph_eased,
        bloom_strength=settings.bloom_strength,
    )
    return new_state, output


class ParticleEngine:
    """
    Stateful wrapper around ``tick`` for host loops.

    Pulls exactly one spectrum sample per tick from an audio source and
    writes scheduler shape requests back into its settings.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        settings: Optional[Settings] = None,
        seed: Optional[int] = None,
    ):
        self.cfg = config or EngineConfig()
        self.settings = settings or Settings()
        self.state = create_state(self.cfg, self.settings, seed)
        self._spectrum = np.zeros(SPECTRUM_BINS, dtype=np.uint8)

    def update(self, source, delta: Optional[float] = None, pointer: Optional[Tuple[float, float]] = None) -> FrameOutput:
        """Sample ``source`` and advance one frame."""
        if delta is None:
            delta = 1.0 / self.cfg.fps
        self._spectrum[:] = 0
        source.fill_frequency_data(self._spectrum)
        frame = FrameInput(
            delta=delta,
            spectrum=self._spectrum.copy(),
            is_playing=source.is_playing,
            has_been_activated=source.has_been_activated,
            pointer=pointer,
        )
        self.state, output = tick(self.state, frame, self.settings)
        if output.requested_shape is not None:
            self.settings = replace(self.settings, visual_shape=output.requested_shape)
        return output

    def set_shape(self, shape):
        self.settings = replace(self.settings, visual_shape=ShapeKind.parse(shape))

    def next_shape(self):
        """Step to the next shape in the cyclic order."""
        self.set_shape(next_shape(self.state.shape))

    def run(self, source, n_frames: int, pointer: Optional[Tuple[float, float]] = None) -> Iterator[FrameOutput]:
        """Yield ``n_frames`` outputs at the configured frame rate."""
        delta = 1.0 / self.cfg.fps
        for _ in range(n_frames):
            output = self.update(source, delta, pointer)
            advance = getattr(source, "advance", None)
            if advance is not None:
                advance(delta)
            yield output
