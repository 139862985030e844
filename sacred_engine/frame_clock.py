"""
Frame Clock - Frame pacing and time smoothing for the render loop.

The host calls tick() once per display refresh with a monotonically
increasing timestamp in milliseconds. Accepted frames update a smoothed
timing state that animation code reads instead of raw wall-clock time,
which removes jitter from uneven refresh intervals and caps the jump after
the loop has been suspended.

Also provides FrameMonitor, which tracks FPS stability and picks a render
quality level so expensive work (fractal depth, color precision) can back
off when the host cannot keep up.
"""

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, Optional

import numpy as np

from .color import ColorInterpolator
from .config import AnimationConfig, FrameConfig, RenderQuality, get_quality

logger = logging.getLogger(__name__)

HISTORY_SIZE = 60  # Rolling window for FPS (1 second @ 60 FPS)
FRAME_SMOOTHING = 0.9  # EMA: 90% history, 10% new sample


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass
class TimingState:
    """Timing snapshot for one accepted frame."""

    current_time: float  # ms, host timestamp of the last accepted frame
    delta_time: float  # ms, clamped raw delta
    smoothed_delta_time: float  # ms, EMA of delta_time
    frame_count: int
    actual_fps: int

    def to_dict(self) -> dict:
        return asdict(self)


class FrameClock:
    """
    Rate-limited, smoothed animation clock.

    Mutated only by tick() (and reset()); every other accessor returns
    copies so callers cannot alter the clock's state.
    """

    def __init__(
        self,
        config: Optional[AnimationConfig] = None,
        colors: Optional[ColorInterpolator] = None,
    ):
        """
        Initialize the clock.

        Args:
            config: Animation configuration (defaults to 60 FPS, smoothing on)
            colors: Optional color interpolator whose caches reset() clears
        """
        self.config = config or AnimationConfig()
        self.colors = colors
        self._target_frame_time = self.config.target_frame_time

        self._state = TimingState(
            current_time=0.0,
            delta_time=self._target_frame_time,
            smoothed_delta_time=self._target_frame_time,
            frame_count=0,
            actual_fps=int(round(self.config.target_fps)),
        )
        self._history: Deque[float] = deque(maxlen=HISTORY_SIZE)
        self._last_frame_time = 0.0
        self._last_render_time = 0.0

        # Accumulated smoothed time, in ms
        self._animation_time = 0.0

        logger.info(
            f"FrameClock initialized: target={self.config.target_fps:g} FPS, "
            f"max_frame_time={self.config.max_frame_time:g}ms"
        )

    @property
    def target_frame_time(self) -> float:
        return self._target_frame_time

    def tick(self, timestamp_ms: Optional[float] = None) -> bool:
        """
        Offer a frame timestamp to the clock.

        Args:
            timestamp_ms: Host timestamp in ms (defaults to perf_counter)

        Returns:
            True if the frame was accepted and timing state advanced,
            False if it arrived before the target frame interval elapsed
        """
        if timestamp_ms is None:
            timestamp_ms = _now_ms()

        if timestamp_ms - self._last_render_time < self._target_frame_time:
            return False

        raw_delta = timestamp_ms - self._last_frame_time
        self._last_frame_time = timestamp_ms
        self._last_render_time = timestamp_ms

        # Suppress large jumps (e.g. after the loop was suspended)
        delta = min(raw_delta, self.config.max_frame_time)

        state = self._state
        if self.config.enable_frame_smoothing:
            state.smoothed_delta_time = (
                state.smoothed_delta_time * FRAME_SMOOTHING + delta * (1 - FRAME_SMOOTHING)
            )
        else:
            state.smoothed_delta_time = delta

        state.delta_time = delta
        state.current_time = timestamp_ms
        state.frame_count += 1

        self._history.append(delta)
        avg_frame_time = sum(self._history) / len(self._history)
        if avg_frame_time > 0:
            state.actual_fps = int(round(1000.0 / avg_frame_time))

        return True

    def get_animation_time(self) -> float:
        """
        Advance and return animation time in seconds.

        With timing correction enabled each call integrates the smoothed
        delta, so call it once per accepted frame.
        """
        if self.config.enable_timing_correction:
            self._animation_time += self._state.smoothed_delta_time
            return self._animation_time * 0.001
        return self._state.current_time * 0.001

    def timing_state(self) -> TimingState:
        """Snapshot of the current timing state."""
        return TimingState(**asdict(self._state))

    def update_config(self, **changes) -> AnimationConfig:
        """Merge configuration changes; unspecified fields keep their value."""
        self.config = self.config.merged(**changes)
        self._target_frame_time = self.config.target_frame_time
        if self.colors is not None:
            self.colors.config = self.config
        logger.info(f"FrameClock config updated: {changes}")
        return self.config

    def reset(self) -> None:
        """Zero counters and accumulated time, clear history and color caches."""
        self._state.current_time = 0.0
        self._state.frame_count = 0
        self._animation_time = 0.0
        self._last_frame_time = 0.0
        self._last_render_time = 0.0
        self._history.clear()
        if self.colors is not None:
            self.colors.clear_caches()
        logger.info("FrameClock reset")


# ============================================================================
# Adaptive quality monitoring
# ============================================================================


@dataclass
class FrameMetrics:
    """Frame rate metrics reported by FrameMonitor."""

    current_fps: float
    average_fps: float
    frame_time: float
    dropped_frames: int
    quality_level: str
    is_stable: bool


class FrameMonitor:
    """
    VSync-style frame gate with FPS stability tracking and adaptive quality.

    Quality only changes when the frame rate is stable and at least
    quality_adjustment_delay ms have passed since the previous change.
    """

    STABILITY_WINDOW = 30
    STABILITY_THRESHOLD = 5.0  # FPS standard deviation
    VSYNC_TOLERANCE = 0.95
    DROPPED_FRAME_FACTOR = 1.5

    def __init__(self, config: Optional[FrameConfig] = None, quality_adjustment_delay: float = 2000.0):
        self.config = config or FrameConfig()
        self.quality_adjustment_delay = quality_adjustment_delay
        self._target_frame_time = 1000.0 / self.config.target_fps

        self._history: Deque[float] = deque(maxlen=HISTORY_SIZE)
        self._last_frame_time = 0.0
        self._quality_changed_at = 0.0
        self._dropped_frames = 0

        self._metrics = self._initial_metrics()
        self._quality = get_quality("high")

        logger.info(f"FrameMonitor initialized: {self.config.to_dict()}")

    def _initial_metrics(self) -> FrameMetrics:
        return FrameMetrics(
            current_fps=self.config.target_fps,
            average_fps=self.config.target_fps,
            frame_time=self._target_frame_time,
            dropped_frames=0,
            quality_level="high",
            is_stable=True,
        )

    def should_render(self, timestamp_ms: float) -> bool:
        """Update metrics for a frame and decide whether to render it."""
        delta = timestamp_ms - self._last_frame_time

        if self.config.enable_vsync and delta < self._target_frame_time * self.VSYNC_TOLERANCE:
            return False

        self._last_frame_time = timestamp_ms
        self._update_metrics(delta)

        if self.config.adaptive_quality:
            self._update_quality(timestamp_ms)

        return True

    def _update_metrics(self, delta: float) -> None:
        self._history.append(delta)

        metrics = self._metrics
        metrics.current_fps = 1000.0 / delta if delta > 0 else 0.0
        metrics.frame_time = delta

        avg_frame_time = float(np.mean(self._history))
        if avg_frame_time > 0:
            raw_avg_fps = 1000.0 / avg_frame_time
            metrics.average_fps = (
                metrics.average_fps * FRAME_SMOOTHING + raw_avg_fps * (1 - FRAME_SMOOTHING)
            )

        metrics.is_stable = self._is_stable()

        if delta > self._target_frame_time * self.DROPPED_FRAME_FACTOR:
            self._dropped_frames += 1
            metrics.dropped_frames = self._dropped_frames

    def _is_stable(self) -> bool:
        if len(self._history) < self.STABILITY_WINDOW:
            return True
        recent = np.array(list(self._history)[-self.STABILITY_WINDOW:], dtype=np.float64)
        recent = recent[recent > 0]
        if recent.size == 0:
            return False
        fps = 1000.0 / recent
        return float(np.std(fps)) < self.STABILITY_THRESHOLD

    def _update_quality(self, now_ms: float) -> None:
        if now_ms - self._quality_changed_at < self.quality_adjustment_delay:
            return

        avg_fps = self._metrics.average_fps
        thresholds = self.config.quality_thresholds
        if avg_fps >= thresholds.high:
            level = "high"
        elif avg_fps >= thresholds.medium:
            level = "medium"
        else:
            level = "low"

        if level != self._metrics.quality_level and self._metrics.is_stable:
            self._metrics.quality_level = level
            self._quality = get_quality(level)
            self._quality_changed_at = now_ms
            logger.info(f"Quality adjusted to {level} ({avg_fps:.1f} FPS)")

    def metrics(self) -> FrameMetrics:
        return FrameMetrics(**asdict(self._metrics))

    def render_quality(self) -> RenderQuality:
        return self._quality

    def set_quality_level(self, level: str) -> None:
        """Force a quality level; adaptive changes pause for one delay period."""
        self._quality = get_quality(level)
        self._metrics.quality_level = self._quality.level
        self._quality_changed_at = self._last_frame_time + self.quality_adjustment_delay
        logger.info(f"Quality manually set to {self._quality.level}")

    def set_adaptive_quality(self, enabled: bool) -> None:
        self.config.adaptive_quality = enabled
        if not enabled:
            self.set_quality_level("high")
        logger.info(f"Adaptive quality {'enabled' if enabled else 'disabled'}")

    def performance_report(self) -> str:
        m = self._metrics
        return "\n".join([
            "Frame Monitor Report",
            "====================",
            f"Target FPS: {self.config.target_fps:g}",
            f"Current FPS: {m.current_fps:.1f}",
            f"Average FPS: {m.average_fps:.1f}",
            f"Frame Time: {m.frame_time:.2f}ms",
            f"Quality Level: {m.quality_level}",
            f"Dropped Frames: {m.dropped_frames}",
            f"Stable: {'Yes' if m.is_stable else 'No'}",
            f"Adaptive Quality: {'Enabled' if self.config.adaptive_quality else 'Disabled'}",
            f"VSync: {'Enabled' if self.config.enable_vsync else 'Disabled'}",
        ])

    def reset(self) -> None:
        self._history.clear()
        self._dropped_frames = 0
        self._quality_changed_at = 0.0
        self._metrics = self._initial_metrics()
        self._quality = get_quality("high")
        logger.info("FrameMonitor reset")
