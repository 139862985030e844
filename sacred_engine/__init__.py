"""
Sacred Engine
Frame timing, color, geometry and fractal computation for generative visuals.
"""

from .color import ColorInterpolator
from .config import AnimationConfig, FrameConfig, MandelbrotConfig, MorphConfig
from .fractal import MandelbrotSet
from .frame_clock import FrameClock, FrameMonitor, TimingState
from .morph import MorphTarget, ShapeMorphingEngine
from .shapes import ShapePath, generate
from .timing import symmetric_phase

__all__ = [
    'AnimationConfig',
    'ColorInterpolator',
    'FrameClock',
    'FrameConfig',
    'FrameMonitor',
    'MandelbrotConfig',
    'MandelbrotSet',
    'MorphConfig',
    'MorphTarget',
    'ShapeMorphingEngine',
    'ShapePath',
    'TimingState',
    'generate',
    'symmetric_phase',
]
