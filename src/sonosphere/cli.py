"""
CLI entry point for offline particle runs.

Usage:
    sonosphere [audio_file] [options]
    python -m sonosphere [audio_file] [options]
"""

import argparse
import sys
import time
from pathlib import Path

from sonosphere.audio import AudioFileSource, SilentSource
from sonosphere.core.settings import Settings, load_settings
from sonosphere.engine import EngineConfig, ParticleEngine
from sonosphere.io.exporter import FrameExporter
from sonosphere.preview import PreviewConfig, save_preview
from sonosphere.shapes import SHAPE_ORDER

SILENT_SECONDS = 5.0


def _report_progress(tick: int, total: int, fps: int, shape: str, width: int = 30):
    """Show simulated seconds and the active shape; one line per 5% off a tty."""
    done = tick / max(total, 1)
    sim = f"{tick / fps:6.2f}s / {total / fps:.2f}s  [{shape}]"
    if sys.stdout.isatty():
        filled = int(width * done)
        sys.stdout.write(f"\r|{'=' * filled}{' ' * (width - filled)}| {sim}")
        sys.stdout.flush()
        if tick >= total:
            sys.stdout.write("\n")
    elif tick % max(1, total // 20) == 0 or tick >= total:
        print(f"  t={sim}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sonosphere",
        description="Audio-reactive 3D particle cloud simulator",
    )

    parser.add_argument(
        "audio",
        type=Path,
        nargs="?",
        default=None,
        help="Input audio file (wav, mp3, flac). Omit for a silent run.",
    )

    # Timing
    parser.add_argument("-f", "--fps", type=int, default=60, help="Ticks per second (default: 60)")
    parser.add_argument("--frames", type=int, default=None, help="Number of frames to simulate")
    parser.add_argument("--max-duration", type=float, default=None, help="Limit the run to N seconds")

    # Engine
    parser.add_argument(
        "--shape", type=str, default=None,
        choices=[kind.value for kind in SHAPE_ORDER],
        help="Starting shape (overrides settings file)",
    )
    parser.add_argument("--settings", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--particles", type=int, default=4000, help="Particle count (default: 4000)")
    parser.add_argument(
        "--timing", type=str, default="delta", choices=["delta", "fixed"],
        help="Transition timing: elapsed-time or fixed 60 ticks/s (default: delta)",
    )
    parser.add_argument(
        "--morph-snapshot", type=str, default="completed", choices=["completed", "blended"],
        help="Snapshot policy for shape changes mid-morph (default: completed)",
    )

    # Output
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output manifest JSON path")
    parser.add_argument("--positions", type=Path, default=None, help="Output positions .npz path")
    parser.add_argument("--preview-dir", type=Path, default=None, help="Directory for PNG snapshots")
    parser.add_argument("--preview-every", type=int, default=30, help="Snapshot every N frames (default: 30)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.audio is not None and not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)
    if args.settings is not None and not args.settings.exists():
        print(f"Error: Settings file not found: {args.settings}", file=sys.stderr)
        sys.exit(1)
    if args.fps <= 0:
        print(f"Error: --fps must be positive, got {args.fps}", file=sys.stderr)
        sys.exit(1)
    if args.frames is not None and args.frames <= 0:
        print(f"Error: --frames must be positive, got {args.frames}", file=sys.stderr)
        sys.exit(1)

    try:
        settings = load_settings(args.settings) if args.settings else Settings()
        if args.shape:
            settings = settings.updated({"visual_shape": args.shape})
        config = EngineConfig(
            particle_count=args.particles,
            fps=args.fps,
            timing=args.timing,
            morph_snapshot=args.morph_snapshot,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Step 1: Audio
    if args.audio is not None:
        print(f"Loading audio: {args.audio}")
        t0 = time.time()
        source = AudioFileSource.load(args.audio)
        duration = source.duration
        print(f"  Duration: {duration:.1f}s")
        print(f"  Loading took {time.time() - t0:.1f}s")
    else:
        print("No audio given, running silent")
        source = SilentSource(activated=True)
        duration = SILENT_SECONDS

    if args.max_duration is not None:
        duration = min(duration, args.max_duration)
    total_frames = args.frames if args.frames is not None else max(1, int(duration * args.fps))

    # Step 2: Simulate
    print(f"\nSimulating {total_frames} frames @ {args.fps}fps, "
          f"{config.particle_count} particles, shape: {settings.visual_shape.value}")
    if args.preview_dir is not None:
        args.preview_dir.mkdir(parents=True, exist_ok=True)

    engine = ParticleEngine(config, settings, seed=args.seed)
    keep = args.output is not None or args.positions is not None
    outputs = []
    preview_cfg = PreviewConfig()

    t1 = time.time()
    for i, output in enumerate(engine.run(source, total_frames)):
        if keep:
            outputs.append(output)
        if args.preview_dir is not None and i % max(1, args.preview_every) == 0:
            save_preview(output, args.preview_dir / f"frame_{i:05d}.png", preview_cfg)
        _report_progress(i + 1, total_frames, args.fps, output.shape.value)
    elapsed = time.time() - t1

    # Step 3: Export
    exporter = FrameExporter()
    if args.output is not None:
        exporter.export_json(outputs, args.fps, args.output)
        print(f"  Manifest: {args.output}")
    if args.positions is not None:
        exporter.export_numpy(outputs, args.positions)
        print(f"  Positions: {args.positions}")

    print(f"\nDone! {total_frames} frames in {elapsed:.1f}s "
          f"({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Final shape: {engine.state.shape.value}")


if __name__ == "__main__":
    main()
