"""
Sacred Engine CLI - Development commands for the computation core.

Entry point:
    sacred-engine clock      - Simulate a host frame loop and report timing
    sacred-engine fractal    - Render an ASCII fractal preview with stats
    sacred-engine shapes     - List shape kinds or print a generated outline
    sacred-engine points     - List fractal points of interest
"""

import argparse
import json
import logging
import sys

import numpy as np

from .config import COLOR_SCHEMES, AnimationConfig, FrameConfig, MandelbrotConfig
from .fractal import INTERESTING_POINTS, MandelbrotSet
from .frame_clock import FrameClock, FrameMonitor
from .logging_config import configure_logging
from .shapes import generate, get_generator, list_shapes

logger = logging.getLogger(__name__)

ASCII_RAMP = " .:-=+*#%@"


def validate_positive_int(value: str) -> int:
    """Validate positive integer."""
    try:
        num = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid integer: {value}")

    if num <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got: {num}")
    return num


def validate_positive_float(value: str) -> float:
    """Validate positive number."""
    try:
        num = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")

    if num <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got: {num}")
    return num


def validate_point_name(value: str) -> str:
    """Validate fractal point-of-interest name."""
    names = [p.name for p in INTERESTING_POINTS]
    if value not in names:
        raise argparse.ArgumentTypeError(
            f"Unknown point '{value}', choose from: {', '.join(names)}"
        )
    return value


def validate_shape_kind(value: str) -> str:
    """Validate registered shape kind."""
    if get_generator(value) is None:
        raise argparse.ArgumentTypeError(
            f"Unknown shape '{value}', choose from: {', '.join(list_shapes())}"
        )
    return value


# ============================================================================
# Commands
# ============================================================================


def run_clock(args) -> int:
    """Feed evenly spaced timestamps through FrameClock and FrameMonitor."""
    clock = FrameClock(AnimationConfig(target_fps=args.fps))
    monitor = FrameMonitor(FrameConfig(target_fps=args.fps))

    accepted = 0
    for i in range(1, args.frames + 1):
        timestamp = i * args.interval
        if clock.tick(timestamp):
            accepted += 1
            clock.get_animation_time()
        monitor.should_render(timestamp)

    state = clock.timing_state()
    print(f"Accepted frames: {accepted}/{args.frames}")
    print(json.dumps(state.to_dict(), indent=2))
    print()
    print(monitor.performance_report())
    return 0


def ascii_preview(rgba: np.ndarray) -> str:
    """Map buffer brightness onto a character ramp, one char per pixel."""
    brightness = rgba[:, :, :3].astype(np.float64).mean(axis=2)
    indices = np.minimum((brightness / 256.0 * len(ASCII_RAMP)).astype(int), len(ASCII_RAMP) - 1)
    return "\n".join("".join(ASCII_RAMP[i] for i in row) for row in indices)


def run_fractal(args) -> int:
    fractal = MandelbrotSet(MandelbrotConfig(
        width=args.width,
        height=args.height,
        max_iterations=args.iterations,
        color_scheme=args.scheme,
    ))
    if args.point:
        fractal.navigate_to_point(args.point)

    print(ascii_preview(fractal.generate()))

    stats = fractal.stats()
    print()
    print(f"Zoom: {stats.zoom_level:g}  View area: {stats.view_area:.6g}")
    print(f"Pixels in set (est.): {stats.pixels_in_set}/{stats.total_pixels}")
    print(f"Average iterations: {stats.average_iterations:.2f}")
    return 0


def run_shapes(args) -> int:
    if not args.kind:
        for kind in list_shapes():
            print(kind)
        return 0

    path = generate(args.kind, (0.0, 0.0), args.radius)
    print(f"{args.kind}: {len(path)} points, {'closed' if path.closed else 'open'}")
    for x, y in path.to_list():
        print(f"  {x:10.4f} {y:10.4f}")
    return 0


def run_points(args) -> int:
    for point in INTERESTING_POINTS:
        print(f"{point.name:<18} center=({point.center_x:g}, {point.center_y:g}) zoom={point.zoom:g}")
    return 0


# ============================================================================
# Entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sacred-engine",
        description="Sacred Engine - Generative geometry computation core",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sacred-engine clock --fps 60 --frames 120 --interval 16.7
  sacred-engine fractal --point "Seahorse Valley" --iterations 200
  sacred-engine shapes --kind star --radius 50
  sacred-engine points
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    subparsers = parser.add_subparsers(dest="command")

    clock = subparsers.add_parser("clock", help="Simulate a host frame loop")
    clock.add_argument("--fps", type=validate_positive_float, default=60.0, help="Target FPS (default: 60)")
    clock.add_argument("--frames", type=validate_positive_int, default=120, help="Frames to simulate (default: 120)")
    clock.add_argument(
        "--interval", type=validate_positive_float, default=16.7, help="Host refresh interval in ms (default: 16.7)"
    )
    clock.set_defaults(handler=run_clock)

    fractal = subparsers.add_parser("fractal", help="Render an ASCII fractal preview")
    fractal.add_argument("--point", type=validate_point_name, default=None, help="Point of interest to view")
    fractal.add_argument("--width", type=validate_positive_int, default=80, help="Columns (default: 80)")
    fractal.add_argument("--height", type=validate_positive_int, default=32, help="Rows (default: 32)")
    fractal.add_argument(
        "--iterations", type=validate_positive_int, default=100, help="Maximum iterations (default: 100)"
    )
    fractal.add_argument("--scheme", choices=COLOR_SCHEMES, default="grayscale", help="Palette (default: grayscale)")
    fractal.set_defaults(handler=run_fractal)

    shapes = subparsers.add_parser("shapes", help="List shapes or print one outline")
    shapes.add_argument("--kind", type=validate_shape_kind, default=None, help="Shape kind to generate")
    shapes.add_argument("--radius", type=validate_positive_float, default=1.0, help="Radius (default: 1)")
    shapes.set_defaults(handler=run_shapes)

    points = subparsers.add_parser("points", help="List fractal points of interest")
    points.set_defaults(handler=run_points)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json_output=True if args.json_logs else None,
    )

    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
