"""
Fractal Field Generator - Escape-time Mandelbrot rendering.

Renders the current view (center, zoom) into an RGBA pixel buffer. The
visible window is 4/zoom units wide on both axes. Whole-field rendering is
vectorized with numpy; the scalar calculate() path exists for single-point
queries and must agree with the vectorized result pixel for pixel.

Usage:
    fractal = MandelbrotSet(MandelbrotConfig(width=200, height=200))
    fractal.navigate_to_point("Seahorse Valley")
    rgba = fractal.generate()              # (200, 200, 4) uint8

    render = fractal.generate_progressive()
    for progress in render:                # one scanline per step
        ...
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .color import RGB, hsl_to_rgb, round_half_up
from .config import MandelbrotConfig

logger = logging.getLogger(__name__)

VIEW_SPAN = 4.0  # Complex-plane width visible at zoom 1
QUICK_TEST_ITERATIONS = 50
STATS_SAMPLE_STEP = 10

IN_SET_COLOR: RGB = (0, 0, 0)


@dataclass(frozen=True)
class Complex:
    real: float
    imaginary: float


@dataclass(frozen=True)
class MandelbrotResult:
    """Outcome of iterating one point."""

    iterations: int
    escaped: bool
    final_z: Complex


@dataclass(frozen=True)
class PointOfInterest:
    name: str
    center_x: float
    center_y: float
    zoom: float


INTERESTING_POINTS: List[PointOfInterest] = [
    PointOfInterest("Overview", -0.5, 0.0, 1),
    PointOfInterest("Seahorse Valley", -0.75, 0.1, 100),
    PointOfInterest("Lightning", -1.775, 0.0, 1000),
    PointOfInterest("Spiral", -0.16, 1.04, 500),
    PointOfInterest("Feather", -0.7269, 0.1889, 10000),
    PointOfInterest("Elephant Valley", 0.25, 0.0, 100),
    PointOfInterest("Mini Mandelbrot", -1.25066, 0.02012, 50000),
]


@dataclass
class FractalStats:
    """Decimated-sample statistics for the current view."""

    total_pixels: int
    pixels_in_set: int  # Estimated for the full image
    average_iterations: float
    zoom_level: float
    view_area: float


# ============================================================================
# Palettes
# ============================================================================

# t = iterations / max_iterations for escaped points, always in [0, 1)


def classic_palette(t: float) -> RGB:
    intensity = int(math.floor(t * 255))
    # Halved/quartered channels round half to even like a clamped byte store
    return (intensity, round(intensity / 2), round(intensity / 4))


def rainbow_palette(t: float) -> RGB:
    return hsl_to_rgb(t * 360, 1.0, 0.5)


def fire_palette(t: float) -> RGB:
    r = min(255, int(math.floor(t * 512)))
    g = max(0, min(255, int(math.floor((t - 0.5) * 512))))
    b = max(0, min(255, int(math.floor((t - 0.75) * 1024))))
    return (r, g, b)


def ice_palette(t: float) -> RGB:
    b = min(255, int(math.floor(t * 512)))
    g = max(0, min(255, int(math.floor((t - 0.25) * 512))))
    r = max(0, min(255, int(math.floor((t - 0.5) * 512))))
    return (r, g, b)


def grayscale_palette(t: float) -> RGB:
    intensity = int(math.floor(t * 255))
    return (intensity, intensity, intensity)


PALETTES: Dict[str, Callable[[float], RGB]] = {
    "classic": classic_palette,
    "rainbow": rainbow_palette,
    "fire": fire_palette,
    "ice": ice_palette,
    "grayscale": grayscale_palette,
}


def get_palette(scheme: str) -> Callable[[float], RGB]:
    """Get a palette by name, returns classic if not found."""
    return PALETTES.get(scheme, classic_palette)


def palette_table(scheme: str, max_iterations: int) -> np.ndarray:
    """
    Precompute the color of every possible escape iteration.

    Returns:
        (max_iterations + 1, 3) uint8 table indexed by iteration count
    """
    palette = get_palette(scheme)
    table = np.zeros((max_iterations + 1, 3), dtype=np.uint8)
    if max_iterations <= 0:
        return table
    for iterations in range(max_iterations + 1):
        table[iterations] = palette(iterations / max_iterations)
    return table


# ============================================================================
# Iteration
# ============================================================================


def iterate_field(
    c_real: np.ndarray,
    c_imag: np.ndarray,
    max_iterations: int,
    escape_radius: float = 2.0,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Iterate z <- z^2 + c for every point of a coordinate grid.

    Points stop updating once they escape, so iteration counts and final z
    match the scalar loop exactly.

    Args:
        c_real: Real parts (any shape)
        c_imag: Imaginary parts (same shape)
        max_iterations: Iteration cap
        escape_radius: Escape when |z|^2 > escape_radius^2

    Returns:
        (iterations, escaped, z_real, z_imag) arrays shaped like the input
    """
    c_real = np.asarray(c_real, dtype=np.float64)
    c_imag = np.asarray(c_imag, dtype=np.float64)
    radius_sq = escape_radius * escape_radius

    z_real = np.zeros_like(c_real)
    z_imag = np.zeros_like(c_imag)
    iterations = np.full(c_real.shape, max_iterations, dtype=np.int64)
    escaped = np.zeros(c_real.shape, dtype=bool)
    active = np.ones(c_real.shape, dtype=bool)

    for i in range(max_iterations):
        if not active.any():
            break
        zr = z_real[active]
        zi = z_imag[active]
        new_real = zr * zr - zi * zi + c_real[active]
        new_imag = 2 * zr * zi + c_imag[active]
        z_real[active] = new_real
        z_imag[active] = new_imag

        escaping = np.zeros_like(active)
        escaping[active] = new_real * new_real + new_imag * new_imag > radius_sq
        iterations[escaping] = i
        escaped |= escaping
        active &= ~escaping

    return iterations, escaped, z_real, z_imag


def _view_bounds(config: MandelbrotConfig) -> Tuple[float, float, float, float]:
    scale = VIEW_SPAN / config.zoom
    return (
        config.center_x - scale / 2,
        config.center_x + scale / 2,
        config.center_y - scale / 2,
        config.center_y + scale / 2,
    )


def _axis(min_val: float, max_val: float, pixels: np.ndarray, size: int) -> np.ndarray:
    return min_val + (pixels / size) * (max_val - min_val)


def _render_rows(
    config: MandelbrotConfig,
    colors: np.ndarray,
    buffer: np.ndarray,
    start: int,
    stop: int,
) -> None:
    """Render scanlines [start, stop) of config's view into buffer."""
    min_x, max_x, min_y, max_y = _view_bounds(config)
    xs = _axis(min_x, max_x, np.arange(config.width, dtype=np.float64), config.width)
    ys = _axis(min_y, max_y, np.arange(start, stop, dtype=np.float64), config.height)
    c_real, c_imag = np.meshgrid(xs, ys)

    iterations, escaped, _, _ = iterate_field(
        c_real, c_imag, config.max_iterations, config.escape_radius
    )

    rgb = colors[np.minimum(iterations, len(colors) - 1)]
    rgb[~escaped] = IN_SET_COLOR
    buffer[start:stop, :, :3] = rgb
    buffer[start:stop, :, 3] = 255


class ProgressiveRender:
    """
    Resumable scanline-at-a-time render of a fixed view.

    The view is captured at creation, so later pan/zoom calls on the
    generator do not affect a render in progress. Drop the object to cancel.
    """

    def __init__(self, config: MandelbrotConfig):
        self._config = MandelbrotConfig(**config.to_dict())
        self._colors = palette_table(self._config.color_scheme, self._config.max_iterations)
        self._buffer = np.zeros((self._config.height, self._config.width, 4), dtype=np.uint8)
        self._row = 0

    @property
    def total_rows(self) -> int:
        return self._config.height

    @property
    def rows_done(self) -> int:
        return self._row

    @property
    def done(self) -> bool:
        return self._row >= self._config.height

    @property
    def progress(self) -> float:
        return self._row / self._config.height

    @property
    def buffer(self) -> np.ndarray:
        """Copy of the buffer; rows not yet rendered are zero."""
        return self._buffer.copy()

    def advance(self) -> float:
        """Render the next scanline and return progress in (0, 1]."""
        if self.done:
            return 1.0
        _render_rows(self._config, self._colors, self._buffer, self._row, self._row + 1)
        self._row += 1
        return self.progress

    def run(
        self,
        on_progress: Optional[Callable[[float], None]] = None,
        on_complete: Optional[Callable[[np.ndarray], None]] = None,
    ) -> np.ndarray:
        """Drive the render to completion, reporting after every row."""
        while not self.done:
            progress = self.advance()
            if on_progress:
                on_progress(progress)

        result = self.buffer
        if on_complete:
            on_complete(result)
        return result

    def __iter__(self):
        return self

    def __next__(self) -> float:
        if self.done:
            raise StopIteration
        return self.advance()


# ============================================================================
# Generator
# ============================================================================

ComplexLike = Union[Complex, complex, Tuple[float, float]]


def _as_complex(c: ComplexLike) -> Complex:
    if isinstance(c, Complex):
        return c
    if isinstance(c, complex):
        return Complex(c.real, c.imag)
    real, imaginary = c
    return Complex(float(real), float(imaginary))


def _valid_factor(factor: float) -> bool:
    if factor > 0 and math.isfinite(factor):
        return True
    logger.warning(f"Ignoring zoom factor {factor}, must be positive")
    return False


class MandelbrotSet:
    """
    Mandelbrot field generator with an owned, mutable view.

    The view (center, zoom) is changed only through the mutators on this
    object; config returns a snapshot.
    """

    def __init__(self, config: Optional[MandelbrotConfig] = None):
        self._config = MandelbrotConfig(**(config or MandelbrotConfig()).to_dict())
        self._buffer: Optional[np.ndarray] = None
        logger.info(
            f"MandelbrotSet initialized: {self._config.width}x{self._config.height}, "
            f"max_iterations={self._config.max_iterations}"
        )

    @property
    def config(self) -> MandelbrotConfig:
        return MandelbrotConfig(**self._config.to_dict())

    @property
    def buffer(self) -> Optional[np.ndarray]:
        """Most recent full render, or None before the first generate()."""
        return None if self._buffer is None else self._buffer.copy()

    def update_config(self, **changes) -> MandelbrotConfig:
        """Merge configuration changes; unspecified fields keep their value."""
        self._config = self._config.merged(**changes)
        logger.debug(f"Fractal config updated: {changes}")
        return self.config

    # --- Point queries ---

    def calculate(self, c: ComplexLike, max_iterations: Optional[int] = None) -> MandelbrotResult:
        """
        Escape-time iteration for a single point.

        Args:
            c: Point as Complex, builtin complex or (real, imaginary)
            max_iterations: Override the configured iteration cap

        Returns:
            MandelbrotResult; iterations equals the cap when not escaped
        """
        c = _as_complex(c)
        limit = self._config.max_iterations if max_iterations is None else max_iterations
        radius_sq = self._config.escape_radius * self._config.escape_radius

        zr, zi = 0.0, 0.0
        iterations = 0
        while iterations < limit:
            zr, zi = zr * zr - zi * zi + c.real, 2 * zr * zi + c.imaginary
            if zr * zr + zi * zi > radius_sq:
                return MandelbrotResult(iterations, True, Complex(zr, zi))
            iterations += 1

        return MandelbrotResult(iterations, False, Complex(zr, zi))

    def color_for(self, result: MandelbrotResult) -> RGB:
        """Palette color for a result; points in the set are black."""
        if not result.escaped:
            return IN_SET_COLOR
        t = result.iterations / self._config.max_iterations
        return get_palette(self._config.color_scheme)(t)

    def is_in_set(self, c: ComplexLike, quick_test: bool = True) -> bool:
        """True if c survives the iteration cap (50 iterations when quick)."""
        limit = self._config.max_iterations
        if quick_test:
            limit = min(limit, QUICK_TEST_ITERATIONS)
        return not self.calculate(c, max_iterations=limit).escaped

    def pixel_to_complex(self, px: float, py: float) -> Complex:
        """Map a pixel coordinate to the complex plane under the current view."""
        min_x, max_x, min_y, max_y = _view_bounds(self._config)
        return Complex(
            min_x + (px / self._config.width) * (max_x - min_x),
            min_y + (py / self._config.height) * (max_y - min_y),
        )

    # --- Rendering ---

    def generate(self) -> np.ndarray:
        """Render the full view into an (height, width, 4) uint8 RGBA buffer."""
        config = self._config
        start = time.perf_counter()

        buffer = np.zeros((config.height, config.width, 4), dtype=np.uint8)
        colors = palette_table(config.color_scheme, config.max_iterations)
        _render_rows(config, colors, buffer, 0, config.height)
        self._buffer = buffer

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Generated {config.width}x{config.height} field in {elapsed_ms:.1f}ms")
        return buffer.copy()

    def generate_progressive(self) -> ProgressiveRender:
        """Start a resumable one-scanline-per-step render of the current view."""
        return ProgressiveRender(self._config)

    # --- View mutators ---

    def zoom_in(self, point: Tuple[float, float], factor: float = 2.0) -> None:
        """Re-center on a pixel and multiply zoom by factor."""
        if not _valid_factor(factor):
            return
        target = self.pixel_to_complex(point[0], point[1])
        self._config.center_x = target.real
        self._config.center_y = target.imaginary
        self._config.zoom *= factor

    def zoom_out(self, factor: float = 2.0) -> None:
        if not _valid_factor(factor):
            return
        self._config.zoom /= factor

    def pan(self, dx: float, dy: float) -> None:
        """Shift the view by a pixel delta (dragging right moves the center left)."""
        scale = VIEW_SPAN / self._config.zoom
        self._config.center_x -= dx * (scale / self._config.width)
        self._config.center_y -= dy * (scale / self._config.height)

    def reset(self) -> None:
        self._config.center_x = -0.5
        self._config.center_y = 0.0
        self._config.zoom = 1.0
        logger.info("Fractal view reset")

    def set_color_scheme(self, scheme: str) -> None:
        if scheme not in PALETTES:
            logger.warning(f"Unknown color scheme '{scheme}', classic will be used")
        self._config.color_scheme = scheme

    def set_max_iterations(self, max_iterations: int) -> None:
        if max_iterations < 1:
            logger.warning(f"Ignoring max_iterations {max_iterations}, keeping {self._config.max_iterations}")
            return
        self._config.max_iterations = max_iterations

    # --- Points of interest ---

    def interesting_points(self) -> List[PointOfInterest]:
        return list(INTERESTING_POINTS)

    def navigate_to_point(self, name: str) -> bool:
        """Jump to a named point of interest; False if the name is unknown."""
        for point in INTERESTING_POINTS:
            if point.name == name:
                self._config.center_x = point.center_x
                self._config.center_y = point.center_y
                self._config.zoom = point.zoom
                logger.info(f"Navigated to '{name}' (zoom {point.zoom:g})")
                return True
        return False

    # --- Statistics ---

    def stats(self) -> FractalStats:
        """Estimate set coverage by iterating every 10th pixel on both axes."""
        config = self._config
        min_x, max_x, min_y, max_y = _view_bounds(config)

        xs = _axis(min_x, max_x, np.arange(0, config.width, STATS_SAMPLE_STEP, dtype=np.float64), config.width)
        ys = _axis(min_y, max_y, np.arange(0, config.height, STATS_SAMPLE_STEP, dtype=np.float64), config.height)
        c_real, c_imag = np.meshgrid(xs, ys)

        iterations, escaped, _, _ = iterate_field(
            c_real, c_imag, config.max_iterations, config.escape_radius
        )

        sample_count = iterations.size
        total_pixels = config.width * config.height
        in_set = int(np.count_nonzero(~escaped))

        return FractalStats(
            total_pixels=total_pixels,
            pixels_in_set=round_half_up(in_set / sample_count * total_pixels),
            average_iterations=float(iterations.sum()) / sample_count,
            zoom_level=config.zoom,
            view_area=(VIEW_SPAN / config.zoom) ** 2,
        )
