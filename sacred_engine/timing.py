"""
Per-instance animation timing.

Symmetric phase offsets for nested (fractal) shape copies, plus the
per-frame animation parameter calculation that turns a shape's animation
settings into size, opacity, rotation and offset for one frame.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .easing import clamp, ease_out_elastic

logger = logging.getLogger(__name__)

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2
TAU = 2 * math.pi

BASE_LOOP_DURATION = 6000.0  # ms


# ============================================================================
# Symmetric fractal timing
# ============================================================================


def symmetric_phase(
    base_time: float,
    fractal_depth: int,
    child_index: int,
    total_children: int,
    time_scale: float = 1.0,
) -> float:
    """
    Phase-shifted time for one child of a fractal level.

    Siblings are spaced evenly around one full turn and each recursion
    level shrinks the offset by 1/phi.

    Args:
        base_time: Time of the root instance
        fractal_depth: Recursion level (root is 0)
        child_index: Index of this child among its siblings
        total_children: Number of siblings at this level
        time_scale: Multiplier for the offset (1000 when base_time is in ms)

    Returns:
        base_time + (child_index / total_children) * 2pi * phi^-depth * time_scale
        (base_time itself when there are no siblings)
    """
    if total_children <= 0:
        return base_time
    phase_offset = (child_index / total_children) * TAU
    depth_scale = GOLDEN_RATIO ** (-fractal_depth)
    return base_time + phase_offset * depth_scale * time_scale


def adjusted_time(
    base_time: float,
    fractal_depth: int = 0,
    child_index: int = 0,
    total_children: int = 1,
    time_scale: float = 1.0,
) -> float:
    """Root instances (depth 0) and childless levels keep base_time unchanged."""
    if fractal_depth <= 0 or total_children <= 0:
        return base_time
    return symmetric_phase(base_time, fractal_depth, child_index, total_children, time_scale)


# ============================================================================
# Animation settings
# ============================================================================


class AnimationMode(Enum):
    GROW = "grow"
    PULSE = "pulse"
    ORBIT = "orbit"
    WAVEFORM = "waveform"
    SPIRAL = "spiral"
    HARMONIC = "harmonic"
    SWARM = "swarm"
    BREATHE = "breathe"


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both camelCase and snake_case keys from configuration records."""
    return {_CAMEL_RE.sub("_", k).lower(): v for k, v in data.items()}


@dataclass
class AnimationSettings:
    """Animation block of a shape's configuration."""

    mode: Optional[AnimationMode] = AnimationMode.PULSE
    reverse: bool = False
    speed: float = 0.001
    intensity: float = 0.5
    fade_in: float = 0.2
    fade_out: float = 0.2
    variable_timing: bool = False
    stagger_delay: float = 0.0
    rotation: bool = False
    rotation_speed: float = 0.1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnimationSettings":
        data = _snake_keys(data)
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "mode" in values:
            try:
                values["mode"] = AnimationMode(values["mode"])
            except ValueError:
                logger.debug(f"Unknown animation mode '{values['mode']}', using static")
                values["mode"] = None
        return cls(**values)


@dataclass
class ShapeSettings:
    """Subset of a shape's configuration consumed by animation timing."""

    type: str = "circle"
    size: float = 100.0
    opacity: float = 1.0
    vertices: int = 0
    offset_x: float = 0.0
    offset_y: float = 0.0
    animation: Optional[AnimationSettings] = field(default_factory=AnimationSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShapeSettings":
        data = _snake_keys(data)
        values = {
            k: v for k, v in data.items()
            if k in cls.__dataclass_fields__ and k != "animation"
        }
        position = data.get("position") or {}
        position = _snake_keys(position)
        values.setdefault("offset_x", position.get("offset_x", 0.0))
        values.setdefault("offset_y", position.get("offset_y", 0.0))

        anim = data.get("animation")
        values["animation"] = AnimationSettings.from_dict(anim) if anim is not None else None
        return cls(**values)

    @property
    def unique_id(self) -> float:
        """Deterministic per-shape seed used for jitter and stagger."""
        first_char = ord(self.type[0]) if self.type else 0
        return (
            first_char
            + (self.vertices or 0) * 10
            + self.offset_x * 0.1
            + self.offset_y * 0.1
        )


def seeded_random(seed: float) -> float:
    """Deterministic pseudo-random value in [0, 1) from a seed."""
    x = math.sin(seed * 9999) * 10000
    return x - math.floor(x)


# ============================================================================
# Animation parameters
# ============================================================================


@dataclass
class AnimationParams:
    """Size/opacity/rotation for one frame of one shape instance."""

    size: float
    opacity: float
    rotation: float
    adjusted_time: float


def calculate_animation_params(
    time: float,
    shape: ShapeSettings,
    fractal_depth: int = 0,
    child_index: int = 0,
    total_children: int = 1,
) -> AnimationParams:
    """
    Smoothed pulse/grow/breathe parameters for a shape instance.

    Args:
        time: Animation time in seconds (FrameClock.get_animation_time)
        shape: Resolved shape settings
        fractal_depth, child_index, total_children: Fractal placement

    Returns:
        AnimationParams with opacity clamped to [0, 1]
    """
    t = adjusted_time(time, fractal_depth, child_index, total_children)

    size = shape.size
    opacity = shape.opacity
    rotation = 0.0

    animation = shape.animation
    if animation is None:
        return AnimationParams(size, clamp(opacity), rotation, t)

    speed = animation.speed or 0.001
    intensity = animation.intensity or 0.5
    phase = t * speed * 1000

    if animation.mode == AnimationMode.PULSE:
        value = (math.sin(phase) + 1) / 2
        size *= 1 + value * intensity
        opacity *= 0.7 + value * 0.3
    elif animation.mode == AnimationMode.GROW:
        value = (math.sin(phase) + 1) / 2
        size *= 0.5 + value * intensity
    elif animation.mode == AnimationMode.BREATHE:
        value = (math.sin(phase * 0.5) + 1) / 2
        size *= 0.9 + value * intensity * 0.2
        opacity *= 0.8 + value * 0.2

    if animation.rotation:
        rotation = t * (animation.rotation_speed or 0.1)

    return AnimationParams(size, clamp(opacity), rotation, t)


@dataclass
class MotionParams:
    """Full per-frame motion state used by the shape renderers."""

    dynamic_radius: float
    final_opacity: float
    progress: float
    unique_id: float
    adjusted_time: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    rotation_offset: float = 0.0


def calculate_motion_params(
    time_ms: float,
    shape: ShapeSettings,
    fractal_depth: int = 0,
    child_index: int = 0,
    total_children: int = 1,
) -> MotionParams:
    """
    Loop-based motion for the renderer's animation modes.

    Time is in milliseconds; one loop lasts 6 s (jittered by up to
    +/-500 ms per shape when variable timing is on).
    """
    animation = shape.animation or AnimationSettings(mode=None)
    size = shape.size

    t = time_ms
    if fractal_depth > 0 and total_children > 1:
        t = symmetric_phase(time_ms, fractal_depth, child_index, total_children, time_scale=1000.0)

    unique_id = shape.unique_id

    loop_duration = BASE_LOOP_DURATION
    if animation.variable_timing and fractal_depth == 0:
        loop_duration += seeded_random(unique_id) * 1000 - 500

    delay = 0.0
    if animation.stagger_delay and fractal_depth == 0:
        delay = unique_id % animation.stagger_delay
    t = max(0.0, t - delay)

    raw_progress = (t % loop_duration) / loop_duration
    progress = 1 - raw_progress if animation.reverse else raw_progress

    speed = animation.speed
    intensity = animation.intensity
    mode = animation.mode
    params = MotionParams(
        dynamic_radius=size,
        final_opacity=shape.opacity,
        progress=progress,
        unique_id=unique_id,
        adjusted_time=t,
    )

    if mode == AnimationMode.GROW:
        params.dynamic_radius = size * progress
        if progress < animation.fade_in:
            fade = progress / animation.fade_in
        elif progress > 1 - animation.fade_out:
            fade = (1 - progress) / animation.fade_out
        else:
            fade = 1.0
        params.final_opacity = shape.opacity * fade

    elif mode == AnimationMode.PULSE:
        base_phase = progress * TAU
        breathing = t * speed
        secondary = t * speed * 1.5
        breathing_factor = (
            1 + math.sin(breathing) * intensity + math.sin(secondary) * intensity * 0.3
        )
        pulse = 0.5 + 0.5 * math.sin(base_phase)
        params.dynamic_radius = size * pulse * breathing_factor
        params.final_opacity = shape.opacity * (1 + math.sin(breathing * 1.3) * 0.15)

    elif mode == AnimationMode.ORBIT:
        phase = t * speed
        params.dynamic_radius = size * (0.8 + 0.2 * math.sin(phase * 0.5))
        orbit_radius = size * 0.3 * intensity
        params.offset_x = math.cos(phase) * orbit_radius
        params.offset_y = math.sin(phase) * orbit_radius
        params.rotation_offset = math.sin(phase * 0.25) * 15

    elif mode == AnimationMode.WAVEFORM:
        phase = t * speed
        waveform = math.sin(phase) + math.sin(phase * 2.5) * 0.3 + math.sin(phase * 0.6) * 0.1
        params.dynamic_radius = size * (1 + (waveform / 1.4) * intensity)
        params.final_opacity = shape.opacity * (1 + math.sin(phase * 1.7) * 0.1)
        params.offset_x = math.sin(phase) * size * 0.2 * intensity
        params.offset_y = math.cos(phase * 0.7) * size * 0.15 * intensity

    elif mode == AnimationMode.SPIRAL:
        phase = t * speed
        params.dynamic_radius = size * (0.9 + 0.1 * math.sin(phase * 0.5))
        params.final_opacity = shape.opacity * (0.8 + 0.2 * math.sin(phase * 0.75))
        angle = phase * 2
        growth = (1 - math.cos(phase * 0.5)) * 0.5
        spiral_radius = size * 0.4 * growth * intensity
        params.offset_x = math.cos(angle) * spiral_radius
        params.offset_y = math.sin(angle) * spiral_radius
        params.rotation_offset = phase * 30

    elif mode == AnimationMode.HARMONIC:
        phase = t * speed
        frequency_ratio = 1.5 + math.sin(phase * 0.1) * 0.5
        radius_wave = (
            math.sin(phase) * 0.3 + math.sin(phase * 1.7) * 0.2 + math.sin(phase * 0.4) * 0.1
        )
        params.dynamic_radius = size * (0.9 + radius_wave * intensity * 0.3)
        params.final_opacity = shape.opacity * (0.85 + math.sin(phase * 1.3) * 0.15)
        pattern_scale = size * 0.25 * intensity
        params.offset_x = math.sin(3 * phase + phase * 0.2) * pattern_scale
        params.offset_y = math.sin(frequency_ratio * phase) * pattern_scale
        params.rotation_offset = math.sin(phase * 0.3) * 20

    elif mode == AnimationMode.SWARM:
        phase = t * speed
        r1 = seeded_random(unique_id * 1.1)
        r2 = seeded_random(unique_id * 2.2)
        r3 = seeded_random(unique_id * 3.3)
        f1, f2, f3 = 0.5 + r1, 0.7 + r2, 0.3 + r3
        scale = size * 0.3 * intensity
        params.offset_x = (
            math.sin(phase * f1) * 0.5
            + math.sin(phase * f2 * 1.7) * 0.3
            + math.cos(phase * f3 * 0.5) * 0.2
        ) * scale
        params.offset_y = (
            math.cos(phase * f1 * 0.8) * 0.5
            + math.sin(phase * f3 * 1.3) * 0.3
            + math.cos(phase * f2 * 0.7) * 0.2
        ) * scale
        params.dynamic_radius = size * (0.95 + 0.05 * math.sin(phase * r2 * 2))
        params.final_opacity = shape.opacity * (0.9 + 0.1 * math.sin(phase * r3))
        params.rotation_offset = math.sin(phase * r1) * 25

    elif mode == AnimationMode.BREATHE:
        phase = t * speed
        eased = ease_out_elastic((math.sin(phase) + 1) / 2)
        params.dynamic_radius = size * (0.8 + 0.3 * eased * intensity)
        direction = phase * 0.2
        params.offset_x = math.cos(direction) * (eased * 0.1) * size * intensity
        params.offset_y = math.sin(direction) * (eased * 0.1) * size * intensity
        params.final_opacity = shape.opacity * (0.8 + 0.2 * eased)
        params.rotation_offset = (eased - 0.5) * 5 * intensity

    params.final_opacity = clamp(params.final_opacity)
    return params
