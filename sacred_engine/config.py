"""
Sacred Engine Configuration - Typed configuration records.

Provides:
- Animation timing/color configuration
- Morphing and fractal view configuration
- Render quality presets used by adaptive frame monitoring
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List


@dataclass
class AnimationConfig:
    """Frame pacing and color interpolation configuration."""

    target_fps: float = 60.0
    enable_frame_smoothing: bool = True
    enable_color_smoothing: bool = True  # Also gates the color result cache
    enable_timing_correction: bool = True
    max_frame_time: float = 33.33  # ms, caps delta at ~30 FPS minimum
    color_precision: int = 1000  # Quantization denominator for channels

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got: {self.target_fps}")
        if self.color_precision <= 0:
            raise ValueError(f"color_precision must be positive, got: {self.color_precision}")

    @property
    def target_frame_time(self) -> float:
        """Target frame interval in milliseconds."""
        return 1000.0 / self.target_fps

    def merged(self, **changes) -> "AnimationConfig":
        """Return a copy with the given fields replaced; others keep their value."""
        known = {k: v for k, v in changes.items() if k in self.__dataclass_fields__}
        return replace(self, **known)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AnimationConfig":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


INTERPOLATION_METHODS = ("linear", "smooth", "cubic")


@dataclass
class MorphConfig:
    """Shape morphing configuration."""

    interpolation_method: str = "linear"  # linear, smooth, cubic
    preserve_area: bool = False
    normalize_vertices: bool = True
    smoothing_factor: float = 0.5  # 0 disables neighbor smoothing in morph()

    def merged(self, **changes) -> "MorphConfig":
        known = {k: v for k, v in changes.items() if k in self.__dataclass_fields__}
        return replace(self, **known)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MorphConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


COLOR_SCHEMES = ("classic", "rainbow", "fire", "ice", "grayscale")


@dataclass
class MandelbrotConfig:
    """Escape-time fractal view configuration."""

    width: int = 400
    height: int = 400
    center_x: float = -0.5
    center_y: float = 0.0
    zoom: float = 1.0
    max_iterations: int = 100
    escape_radius: float = 2.0
    color_scheme: str = "classic"

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Fractal dimensions must be positive, got: {self.width}x{self.height}")
        if self.zoom <= 0:
            raise ValueError(f"zoom must be positive, got: {self.zoom}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got: {self.max_iterations}")

    def merged(self, **changes) -> "MandelbrotConfig":
        known = {k: v for k, v in changes.items() if k in self.__dataclass_fields__}
        return replace(self, **known)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MandelbrotConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class QualityThresholds:
    """FPS thresholds for adaptive quality selection."""

    high: float = 55.0  # Above 55 FPS = high quality
    medium: float = 35.0  # 35-55 FPS = medium quality
    low: float = 20.0


@dataclass
class FrameConfig:
    """Frame monitor configuration (adaptive quality)."""

    target_fps: float = 60.0
    adaptive_quality: bool = True
    enable_vsync: bool = True
    max_frame_skip: int = 3
    quality_thresholds: QualityThresholds = field(default_factory=QualityThresholds)

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got: {self.target_fps}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "FrameConfig":
        config = cls(**{
            k: v for k, v in data.items()
            if k in cls.__dataclass_fields__ and k != "quality_thresholds"
        })
        if "quality_thresholds" in data:
            config.quality_thresholds = QualityThresholds(**data["quality_thresholds"])
        return config


@dataclass(frozen=True)
class RenderQuality:
    """Render settings for one quality level."""

    level: str
    color_precision: int
    animation_smoothing: bool
    fractal_depth_limit: int
    particle_limit: int


QUALITY_PRESETS: Dict[str, RenderQuality] = {
    "high": RenderQuality(
        level="high",
        color_precision=1000,
        animation_smoothing=True,
        fractal_depth_limit=6,
        particle_limit=10000,
    ),
    "medium": RenderQuality(
        level="medium",
        color_precision=100,
        animation_smoothing=True,
        fractal_depth_limit=4,
        particle_limit=5000,
    ),
    "low": RenderQuality(
        level="low",
        color_precision=10,
        animation_smoothing=False,
        fractal_depth_limit=3,
        particle_limit=2000,
    ),
}


def get_quality(name: str) -> RenderQuality:
    """Get a quality preset by name, returns 'high' if not found."""
    return QUALITY_PRESETS.get(name.lower(), QUALITY_PRESETS["high"])


def list_qualities() -> List[str]:
    """List available quality preset names."""
    return list(QUALITY_PRESETS.keys())
