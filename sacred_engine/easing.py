"""
Easing functions and small numeric helpers.

Every easing maps a progress fraction in [0, 1] to a shaped fraction with
f(0) == 0 and f(1) == 1. Inputs are clamped before evaluation.
"""

import logging
import math
from typing import Callable, Dict

logger = logging.getLogger(__name__)

# ============================================================================
# Utility Functions
# ============================================================================


def clamp(value: float, min_val: float = 0.0, max_val: float = 1.0) -> float:
    """Clamp value between min and max."""
    return max(min_val, min(max_val, value))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b by factor t."""
    return a + (b - a) * t


def smoothstep(t: float) -> float:
    """Cubic Hermite smoothing of t in [0, 1]."""
    return t * t * (3.0 - 2.0 * t)


# ============================================================================
# Easing Functions
# ============================================================================


def _ease_linear(t: float) -> float:
    return t


def _ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


def _ease_in_out_quad(t: float) -> float:
    return 2 * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 2 / 2


def _ease_in_out_sine(t: float) -> float:
    return -(math.cos(math.pi * t) - 1) / 2


def _ease_in_out_expo(t: float) -> float:
    # pow-based branches are inexact at the bounds
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    if t < 0.5:
        return 2 ** (20 * t - 10) / 2
    return (2 - 2 ** (-20 * t + 10)) / 2


ELASTIC_C5 = (2 * math.pi) / 4.5


def _ease_in_out_elastic(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    if t < 0.5:
        return -(2 ** (20 * t - 10) * math.sin((20 * t - 11.125) * ELASTIC_C5)) / 2
    return (2 ** (-20 * t + 10) * math.sin((20 * t - 11.125) * ELASTIC_C5)) / 2 + 1


def ease_out_elastic(t: float) -> float:
    """Overshooting settle used by the breathe motion mode."""
    c4 = (2 * math.pi) / 3
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    return 2 ** (-10 * t) * math.sin((t * 10 - 0.75) * c4) + 1


EASING_FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "linear": _ease_linear,
    "easeInOutCubic": _ease_in_out_cubic,
    "easeInOutQuad": _ease_in_out_quad,
    "easeInOutSine": _ease_in_out_sine,
    "easeInOutExpo": _ease_in_out_expo,
    "easeInOutElastic": _ease_in_out_elastic,
}


def apply_easing(easing: str, t: float) -> float:
    """Apply a named easing to t; unknown names fall back to linear."""
    fn = EASING_FUNCTIONS.get(easing)
    if fn is None:
        logger.debug(f"Unknown easing '{easing}', using linear")
        fn = _ease_linear
    return fn(clamp(t))


def list_easings():
    """List available easing ids."""
    return list(EASING_FUNCTIONS.keys())
