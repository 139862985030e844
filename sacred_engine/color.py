"""
Gradient color interpolation for animated shapes.

Samples a cyclic multi-stop gradient with a selectable easing curve.
Channels are blended in floating point, quantized by the configured
precision and only rounded to integers as the final step, which keeps
slow gradients free of visible banding.

Usage:
    colors = ColorInterpolator()
    rgba = colors.color_at(elapsed_ms, ["#ff0000", "#00ff00"], 1.0, 4000, "easeInOutSine")
"""

import logging
import math
from collections import OrderedDict
from typing import Dict, Hashable, Iterator, Optional, Sequence, Tuple

from .config import AnimationConfig
from .easing import apply_easing, clamp

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

DEFAULT_CACHE_CAPACITY = 1000
DEFAULT_CYCLE_DURATION = 6000.0  # ms


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (matches canvas color rounding)."""
    return int(math.floor(value + 0.5))


def parse_hex_color(hex_color: str) -> RGB:
    """
    Parse '#rrggbb', 'rrggbb' or '#rgb' into an (r, g, b) tuple.

    Raises:
        ValueError: If the text is not a hex color
    """
    text = hex_color.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    try:
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        raise ValueError(f"Invalid hex color: {hex_color!r}") from None


def format_rgba(r: int, g: int, b: int, alpha: float) -> str:
    """Format channels as a CSS-style rgba() string."""
    return f"rgba({r}, {g}, {b}, {alpha:g})"


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert HSL (h in degrees, s/l in 0-1) to RGB (0-255)."""
    h = (h % 360) / 360.0
    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs((h * 6) % 2 - 1))
    m = l - c / 2

    if h < 1 / 6:
        r, g, b = c, x, 0.0
    elif h < 2 / 6:
        r, g, b = x, c, 0.0
    elif h < 3 / 6:
        r, g, b = 0.0, c, x
    elif h < 4 / 6:
        r, g, b = 0.0, x, c
    elif h < 5 / 6:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x

    return (
        round_half_up((r + m) * 255),
        round_half_up((g + m) * 255),
        round_half_up((b + m) * 255),
    )


class InsertionOrderCache:
    """
    Fixed-capacity map that evicts the oldest *inserted* key.

    Reads never refresh an entry's position and overwriting an existing key
    keeps its original slot, so this is FIFO rather than LRU.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Cache capacity must be positive, got: {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[Hashable, object]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable) -> Optional[object]:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: Hashable, value: object) -> None:
        self._entries[key] = value
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)
            self.evictions += 1

    def keys(self) -> Iterator[Hashable]:
        return iter(self._entries.keys())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ColorInterpolator:
    """
    Cached multi-stop gradient sampler.

    Two caches are owned here:
    - results: bounded, keyed on (quantized time, stops, alpha, cycle, easing)
    - parsed hex stops: unbounded, palettes are small in practice
    """

    def __init__(
        self,
        config: Optional[AnimationConfig] = None,
        cache_capacity: int = DEFAULT_CACHE_CAPACITY,
    ):
        self.config = config or AnimationConfig()
        self._results = InsertionOrderCache(cache_capacity)
        self._parsed: Dict[str, RGB] = {}

    @property
    def cache(self) -> InsertionOrderCache:
        return self._results

    @property
    def parse_cache_size(self) -> int:
        return len(self._parsed)

    def parse(self, hex_color: str) -> RGB:
        """Parse a hex stop, memoized indefinitely."""
        rgb = self._parsed.get(hex_color)
        if rgb is None:
            rgb = parse_hex_color(hex_color)
            self._parsed[hex_color] = rgb
        return rgb

    @staticmethod
    def cache_key(
        time: float, stops: Sequence[str], alpha: float, cycle_duration: float, easing: str
    ) -> tuple:
        """Deterministic key; time is collapsed to 3 decimals."""
        return (f"{time:.3f}", tuple(stops), alpha, cycle_duration, easing)

    def rgb_at(
        self,
        time: float,
        stops: Sequence[str],
        cycle_duration: float = DEFAULT_CYCLE_DURATION,
        easing: str = "easeInOutCubic",
    ) -> RGB:
        """
        Sample the gradient without touching the result cache.

        Args:
            time: Elapsed time (same unit as cycle_duration)
            stops: Hex color stops, treated as a cycle
            cycle_duration: Time for one pass through all stops
            easing: Easing id applied between adjacent stops

        Returns:
            (r, g, b) integer channels; black for an empty stop list
        """
        n = len(stops)
        if n == 0:
            return (0, 0, 0)

        if cycle_duration > 0 and math.isfinite(time):
            progress = (time % cycle_duration) / cycle_duration
        else:
            progress = 0.0

        scaled_progress = progress * n
        index = min(int(math.floor(scaled_progress)), n - 1)
        next_index = (index + 1) % n

        t = apply_easing(easing, scaled_progress - index)

        r1, g1, b1 = self.parse(stops[index])
        r2, g2, b2 = self.parse(stops[next_index])

        # Full precision until the final step
        r = r1 + (r2 - r1) * t
        g = g1 + (g2 - g1) * t
        b = b1 + (b2 - b1) * t

        precision = self.config.color_precision
        # Elastic easing overshoots; channels stay within a byte
        return tuple(
            max(0, min(255, round_half_up(round_half_up(c * precision) / precision)))
            for c in (r, g, b)
        )

    def color_at(
        self,
        time: float,
        stops: Sequence[str],
        alpha: float = 1.0,
        cycle_duration: float = DEFAULT_CYCLE_DURATION,
        easing: str = "easeInOutCubic",
    ) -> str:
        """
        Resolve the gradient color at a point in time as an rgba() string.

        Results are cached when color smoothing is enabled. Malformed stops
        degrade to black instead of failing the frame.
        """
        alpha = clamp(alpha)
        if not stops:
            return format_rgba(0, 0, 0, 0)

        if not math.isfinite(time):
            logger.warning(f"Non-finite animation time {time}, sampling cycle start")
            time = 0.0

        use_cache = self.config.enable_color_smoothing
        key = None
        if use_cache:
            key = self.cache_key(time, stops, alpha, cycle_duration, easing)
            cached = self._results.get(key)
            if cached is not None:
                return cached

        try:
            r, g, b = self.rgb_at(time, stops, cycle_duration, easing)
        except ValueError as e:
            logger.warning(f"Gradient stop rejected: {e}")
            return format_rgba(0, 0, 0, alpha)

        result = format_rgba(r, g, b, alpha)

        if use_cache:
            self._results.put(key, result)

        return result

    def clear_caches(self) -> None:
        """Drop both the result cache and the parsed-stop cache."""
        self._results.clear()
        self._parsed.clear()
        logger.debug("Color caches cleared")
