"""
Procedural shape generators.

Every generator is a pure function (center, radius, **params) -> ShapePath.
Polygon-like kinds emit their vertices once (closing is implied by
closed=True); parametric kinds emit segments + 1 samples and report
closed=False because their endpoints need not meet.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .timing import GOLDEN_RATIO, TAU

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class ShapeKind(str, Enum):
    CIRCLE = "circle"
    HEXAGON = "hexagon"
    PENTAGON = "pentagon"
    POLYGON = "polygon"
    STAR = "star"
    LISSAJOUS = "lissajous"
    SPIRAL = "spiral"
    DECAY_SPIRAL = "decay_spiral"


class SpiralType(str, Enum):
    GOLDEN = "golden"
    ARCHIMEDEAN = "archimedean"
    LOGARITHMIC = "logarithmic"


@dataclass
class ShapePath:
    """Generated outline: (N, 2) points plus whether the path closes."""

    points: np.ndarray
    closed: bool

    def __len__(self) -> int:
        return len(self.points)

    def to_list(self) -> List[Point]:
        return [(float(x), float(y)) for x, y in self.points]


def _empty_path(closed: bool = False) -> ShapePath:
    return ShapePath(np.zeros((0, 2), dtype=np.float64), closed)


def _polar(center: Point, radii, angles) -> np.ndarray:
    cx, cy = center
    return np.column_stack((cx + radii * np.cos(angles), cy + radii * np.sin(angles)))


# ============================================================================
# Closed shapes
# ============================================================================


def circle(center: Point, radius: float, segments: int = 64) -> ShapePath:
    if segments <= 0:
        return _empty_path(closed=True)
    angles = np.arange(segments) * (TAU / segments)
    return ShapePath(_polar(center, radius, angles), True)


def polygon(center: Point, radius: float, sides: int = 6, start_angle: float = -math.pi / 2) -> ShapePath:
    """Regular polygon with its first vertex at start_angle (top by default)."""
    if sides <= 0:
        return _empty_path(closed=True)
    angles = np.arange(sides) * (TAU / sides) + start_angle
    return ShapePath(_polar(center, radius, angles), True)


def hexagon(center: Point, radius: float) -> ShapePath:
    # Flat-topped: first vertex on the +x axis
    return polygon(center, radius, sides=6, start_angle=0.0)


def pentagon(center: Point, radius: float) -> ShapePath:
    return polygon(center, radius, sides=5)


def star(center: Point, radius: float, points: int = 5, inner_radius: float = 0.4) -> ShapePath:
    """Star alternating outer radius and radius * inner_radius."""
    if points <= 0:
        return _empty_path(closed=True)
    count = points * 2
    angles = np.arange(count) * (math.pi / points) - math.pi / 2
    radii = np.where(np.arange(count) % 2 == 0, radius, radius * inner_radius)
    return ShapePath(_polar(center, radii, angles), True)


# ============================================================================
# Parametric curves
# ============================================================================


def lissajous(
    center: Point,
    radius: float,
    a: float = 3,
    b: float = 2,
    delta: float = math.pi / 2,
    segments: int = 100,
) -> ShapePath:
    if segments <= 0:
        return _empty_path()
    cx, cy = center
    t = np.arange(segments + 1) / segments * TAU
    points = np.column_stack((cx + radius * np.sin(a * t + delta), cy + radius * np.sin(b * t)))
    return ShapePath(points, False)


# Radius profiles r(t) / radius for t in [0, 1]
_SPIRAL_PROFILES: Dict[str, Callable[[np.ndarray, float], np.ndarray]] = {
    SpiralType.GOLDEN.value: lambda t, turns: GOLDEN_RATIO ** (-2 * t * turns) * 0.8,
    SpiralType.ARCHIMEDEAN.value: lambda t, turns: 1 - t * 0.85,
    SpiralType.LOGARITHMIC.value: lambda t, turns: np.exp(-0.2 * t * turns) * 0.9,
}


def spiral(
    center: Point,
    radius: float,
    turns: float = 4,
    spiral_type: str = SpiralType.GOLDEN.value,
    segments: int = 200,
) -> ShapePath:
    """
    Inward spiral from the selectable decay family.

    Args:
        center: Spiral center
        radius: Starting radius
        turns: Number of revolutions
        spiral_type: golden, archimedean or logarithmic (unknown -> golden)
        segments: Sample count (segments + 1 points are emitted)
    """
    if segments <= 0:
        return _empty_path()
    profile = _SPIRAL_PROFILES.get(str(getattr(spiral_type, "value", spiral_type)))
    if profile is None:
        logger.debug(f"Unknown spiral type '{spiral_type}', using golden")
        profile = _SPIRAL_PROFILES[SpiralType.GOLDEN.value]

    t = np.arange(segments + 1) / segments
    angles = t * turns * TAU
    return ShapePath(_polar(center, radius * profile(t, turns), angles), False)


def decay_spiral(
    center: Point,
    radius: float,
    turns: float = 3,
    decay: float = 0.15,
    segments: int = 100,
    rotation: float = 0.0,
) -> ShapePath:
    """Spiral whose radius shrinks by a fixed decay fraction over its length.

    rotation is the starting angle in degrees.
    """
    if segments <= 0:
        return _empty_path()
    t = np.arange(segments + 1) / segments
    angles = math.radians(rotation) + t * TAU * turns
    radii = radius * (1 - t * decay)
    return ShapePath(_polar(center, radii, angles), False)


# ============================================================================
# Registry
# ============================================================================


SHAPE_GENERATORS: Dict[str, Callable[..., ShapePath]] = {
    ShapeKind.CIRCLE.value: circle,
    ShapeKind.HEXAGON.value: hexagon,
    ShapeKind.PENTAGON.value: pentagon,
    ShapeKind.POLYGON.value: polygon,
    ShapeKind.STAR.value: star,
    ShapeKind.LISSAJOUS.value: lissajous,
    ShapeKind.SPIRAL.value: spiral,
    ShapeKind.DECAY_SPIRAL.value: decay_spiral,
}


def get_generator(kind: str) -> Optional[Callable[..., ShapePath]]:
    """Look up a generator by kind, returns None if not registered."""
    return SHAPE_GENERATORS.get(str(getattr(kind, "value", kind)))


def generate(kind: str, center: Point, radius: float, **params) -> ShapePath:
    """Generate a shape by kind; unknown kinds yield an empty open path."""
    generator = get_generator(kind)
    if generator is None:
        logger.warning(f"Unknown shape kind: {kind}")
        return _empty_path()
    return generator(center, radius, **params)


def list_shapes() -> List[str]:
    """List registered shape kinds."""
    return list(SHAPE_GENERATORS.keys())
