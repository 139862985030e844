"""
Shape Morphing Engine - Vertex interpolation between arbitrary polygons.

Two independent workflows:
- Weighted targets: one source shape blended toward any number of morph
  targets, each matched vertex-by-vertex (nearest neighbor) when added.
- Direct morphs: morph_between/morph_sequence resample shapes of different
  vertex counts by arc length and interpolate them.

Vertices are (N, 2) float64 numpy arrays. Inputs are always copied; the
caller's sequences are never modified.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import MorphConfig
from .easing import clamp, smoothstep

logger = logging.getLogger(__name__)


def _empty() -> np.ndarray:
    return np.zeros((0, 2), dtype=np.float64)


def as_vertices(vertices) -> np.ndarray:
    """Copy (x, y) pairs or {'x', 'y'} records into an (N, 2) float array."""
    if vertices is None:
        return _empty()
    if isinstance(vertices, np.ndarray):
        if vertices.size == 0:
            return _empty()
        return np.array(vertices, dtype=np.float64).reshape(-1, 2)
    items = list(vertices)
    if not items:
        return _empty()
    if isinstance(items[0], Mapping):
        items = [(v["x"], v["y"]) for v in items]
    return np.array(items, dtype=np.float64).reshape(-1, 2)


# ============================================================================
# Geometry helpers
# ============================================================================


def polygon_area(vertices: np.ndarray) -> float:
    """Unsigned polygon area via the shoelace formula."""
    if len(vertices) < 3:
        return 0.0
    x = vertices[:, 0]
    y = vertices[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    return abs(float(np.sum(x * y_next - x_next * y))) / 2.0


def perimeter(vertices: np.ndarray) -> float:
    """Closed perimeter length (includes the last-to-first edge)."""
    if len(vertices) < 2:
        return 0.0
    edges = np.roll(vertices, -1, axis=0) - vertices
    return float(np.sum(np.hypot(edges[:, 0], edges[:, 1])))


def centroid(vertices: np.ndarray) -> np.ndarray:
    """Vertex mean (not the area centroid)."""
    if len(vertices) == 0:
        return np.zeros(2, dtype=np.float64)
    return vertices.mean(axis=0)


def normalize_vertices(vertices: np.ndarray) -> np.ndarray:
    """
    Map vertices into [-1, 1] using the larger bounding-box dimension.

    Aspect ratio is preserved; degenerate (zero-extent) shapes are copied.
    """
    if len(vertices) == 0:
        return _empty()
    mins = vertices.min(axis=0)
    extent = vertices.max(axis=0) - mins
    scale = float(max(extent[0], extent[1]))
    if scale == 0:
        return vertices.copy()
    return ((vertices - mins) / scale) * 2.0 - 1.0


def resample_shape(shape: np.ndarray, count: int) -> np.ndarray:
    """
    Redistribute count points evenly along the closed perimeter.

    Walks the cyclic outline placing a point every perimeter/count units
    of arc length, interpolating inside the segment that contains it.
    """
    n = len(shape)
    if n == count:
        return shape.copy()
    if n == 0 or count <= 0:
        return _empty()

    seg_lengths = np.hypot(*(np.roll(shape, -1, axis=0) - shape).T)
    step = float(np.sum(seg_lengths)) / count

    result = np.empty((count, 2), dtype=np.float64)
    walked = 0.0
    seg = 0

    for i in range(count):
        target = i * step

        while seg < n - 1:
            if walked + seg_lengths[seg] >= target:
                break
            walked += seg_lengths[seg]
            seg += 1

        start = shape[seg]
        end = shape[(seg + 1) % n]
        seg_len = seg_lengths[seg]
        if seg_len > 0:
            result[i] = start + (end - start) * ((target - walked) / seg_len)
        else:
            result[i] = start

    return result


def _catmull_rom(p0, p1, p2, p3, t: float):
    a = -0.5 * p0 + 1.5 * p1 - 1.5 * p2 + 0.5 * p3
    b = p0 - 2.5 * p1 + 2.0 * p2 - 0.5 * p3
    c = -0.5 * p0 + 0.5 * p2
    return a * t * t * t + b * t * t + c * t + p1


def _cubic_blend(shape1: np.ndarray, shape2: np.ndarray, t: float) -> np.ndarray:
    """
    Per-shape spline through each vertex's cyclic neighbors, then blend.

    The following control point reuses the next neighbor, so every vertex
    only depends on its immediate predecessor and successor.
    """
    prev1, next1 = np.roll(shape1, 1, axis=0), np.roll(shape1, -1, axis=0)
    prev2, next2 = np.roll(shape2, 1, axis=0), np.roll(shape2, -1, axis=0)
    cubic1 = _catmull_rom(prev1, shape1, next1, next1, t)
    cubic2 = _catmull_rom(prev2, shape2, next2, next2, t)
    return cubic1 + (cubic2 - cubic1) * t


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class MorphTarget:
    """Alternate vertex set the source shape can be blended toward."""

    id: str
    name: str
    vertices: np.ndarray
    weight: float = 0.0  # 0-1 influence


@dataclass(frozen=True)
class VertexCorrespondence:
    """Source vertex matched to its nearest target vertex."""

    source_index: int
    target_index: int
    weight: float = 1.0


@dataclass
class _TargetEntry:
    target: MorphTarget
    target_indices: np.ndarray
    weights: np.ndarray
    correspondences: List[VertexCorrespondence] = field(default_factory=list)


# ============================================================================
# Engine
# ============================================================================


class ShapeMorphingEngine:
    """
    Shape morphing engine.

    States: no source -> source set -> source + N targets. Targets keep the
    correspondences computed against the source that was active when they
    were added; re-add a target after set_source() to rematch it.
    """

    def __init__(self, config: Optional[MorphConfig] = None):
        self._config = config or MorphConfig()
        self._source = _empty()
        self._targets: Dict[str, _TargetEntry] = {}  # insertion order = application order

    # --- Configuration ---

    @property
    def config(self) -> MorphConfig:
        return MorphConfig(**self._config.to_dict())

    def update_config(self, **changes) -> MorphConfig:
        """Merge configuration changes; unspecified fields keep their value."""
        self._config = self._config.merged(**changes)
        logger.debug(f"Morph config updated: {changes}")
        return self.config

    def _prepare(self, vertices) -> np.ndarray:
        verts = as_vertices(vertices)
        if self._config.normalize_vertices:
            return normalize_vertices(verts)
        return verts

    # --- Source and targets ---

    @property
    def source(self) -> np.ndarray:
        return self._source.copy()

    def set_source(self, vertices) -> None:
        """Replace the source shape (existing correspondences are kept as-is)."""
        self._source = self._prepare(vertices)
        logger.debug(f"Morph source set: {len(self._source)} vertices")

    def add_target(self, target: MorphTarget) -> None:
        """Register (or replace) a morph target and match it against the source."""
        verts = self._prepare(target.vertices)
        stored = MorphTarget(
            id=target.id,
            name=target.name,
            vertices=verts,
            weight=clamp(target.weight),
        )

        indices, weights = self._match(verts)
        correspondences = [
            VertexCorrespondence(source_index=i, target_index=int(j), weight=float(w))
            for i, (j, w) in enumerate(zip(indices, weights))
        ]

        # Re-adding moves nothing: dict keeps the original registration slot
        self._targets[target.id] = _TargetEntry(stored, indices, weights, correspondences)
        logger.debug(f"Morph target '{target.id}' added: {len(verts)} vertices")

    def _match(self, target_vertices: np.ndarray):
        """Nearest target vertex per source vertex; lowest index wins ties."""
        n_source = len(self._source)
        if n_source == 0 or len(target_vertices) == 0:
            return np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.float64)

        diff = self._source[:, None, :] - target_vertices[None, :, :]
        distances = np.hypot(diff[..., 0], diff[..., 1])
        indices = np.argmin(distances, axis=1)  # first minimum on ties
        return indices, np.ones(n_source, dtype=np.float64)

    def remove_target(self, target_id: str) -> bool:
        return self._targets.pop(target_id, None) is not None

    def set_target_weight(self, target_id: str, weight: float) -> bool:
        """Set a target's weight (clamped to [0, 1]); False if unknown."""
        entry = self._targets.get(target_id)
        if entry is None:
            return False
        entry.target.weight = clamp(weight)
        return True

    def get_target(self, target_id: str) -> Optional[MorphTarget]:
        entry = self._targets.get(target_id)
        if entry is None:
            return None
        t = entry.target
        return MorphTarget(t.id, t.name, t.vertices.copy(), t.weight)

    def targets(self) -> List[MorphTarget]:
        return [self.get_target(tid) for tid in self._targets]

    def correspondences(self, target_id: str) -> Optional[List[VertexCorrespondence]]:
        entry = self._targets.get(target_id)
        if entry is None:
            return None
        return list(entry.correspondences)

    def clear_targets(self) -> None:
        self._targets.clear()

    # --- Weighted morph ---

    def morph(self) -> np.ndarray:
        """
        Blend the source toward every weighted target.

        Targets apply sequentially in registration order, each moving the
        working vertices toward its matched target vertices.
        """
        if len(self._source) == 0:
            return _empty()

        result = self._source.copy()

        for entry in self._targets.values():
            weight = entry.target.weight
            if weight <= 0 or len(entry.target_indices) == 0:
                continue
            # Stale correspondences from an older source only cover their own length
            count = min(len(entry.target_indices), len(result))
            matched = entry.target.vertices[entry.target_indices[:count]]
            influence = (weight * entry.weights[:count])[:, None]
            result[:count] += (matched - result[:count]) * influence

        factor = self._config.smoothing_factor
        if factor > 0:
            result = self._smooth(result, factor)

        return result

    @staticmethod
    def _smooth(vertices: np.ndarray, factor: float) -> np.ndarray:
        """One cyclic neighbor-averaging pass."""
        if len(vertices) < 3:
            return vertices
        prev = np.roll(vertices, 1, axis=0)
        nxt = np.roll(vertices, -1, axis=0)
        return vertices * (1 - factor) + (prev + nxt) * factor * 0.5

    # --- Direct morphs ---

    def morph_between(self, shape_a, shape_b, t: float) -> np.ndarray:
        """
        Interpolate between two shapes of any vertex counts.

        Args:
            shape_a: Start shape
            shape_b: End shape
            t: Interpolation factor (clamped to [0, 1])

        Returns:
            Interpolated vertices with max(len(a), len(b)) points
        """
        a = as_vertices(shape_a)
        b = as_vertices(shape_b)
        if len(a) == 0 or len(b) == 0:
            return _empty()

        t = clamp(t)
        count = max(len(a), len(b))
        ra = resample_shape(a, count)
        rb = resample_shape(b, count)

        method = self._config.interpolation_method
        if method == "cubic":
            result = _cubic_blend(ra, rb, t)
        elif method == "smooth":
            result = ra + (rb - ra) * smoothstep(t)
        else:
            result = ra + (rb - ra) * t

        if self._config.preserve_area:
            result = self._preserve_area(result, a)

        return result

    @staticmethod
    def _preserve_area(shape: np.ndarray, original: np.ndarray) -> np.ndarray:
        """Scale about the vertex centroid so the area matches original."""
        morphed_area = polygon_area(shape)
        if morphed_area == 0:
            return shape
        scale = math.sqrt(polygon_area(original) / morphed_area)
        center = centroid(shape)
        return center + (shape - center) * scale

    def morph_sequence(self, shapes: Sequence, t: float) -> np.ndarray:
        """
        Morph through a list of shapes; t in [0, 1] spans the whole list.

        The list is split into len(shapes) - 1 equal segments and the
        active pair is morphed with a segment-local factor.
        """
        if len(shapes) == 0:
            return _empty()
        if len(shapes) == 1:
            return as_vertices(shapes[0])

        t = clamp(t)
        segments = len(shapes) - 1
        position = t * segments
        if position >= segments:
            # End of the sequence is the last shape itself, not the tail of a blend
            return self.morph_between(shapes[-1], shapes[-1], 0.0)
        index = int(math.floor(position))
        local_t = position - index

        return self.morph_between(shapes[index], shapes[index + 1], local_t)
