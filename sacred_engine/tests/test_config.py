"""
Unit tests for configuration records and quality presets.

Run with: python -m pytest sacred_engine/tests/test_config.py -v
"""

import pytest

from sacred_engine.config import (
    AnimationConfig,
    FrameConfig,
    MandelbrotConfig,
    MorphConfig,
    QualityThresholds,
    get_quality,
    list_qualities,
)


class TestAnimationConfig:
    def test_defaults(self):
        config = AnimationConfig()
        assert config.target_fps == 60.0
        assert config.max_frame_time == 33.33
        assert config.color_precision == 1000
        assert config.target_frame_time == pytest.approx(1000.0 / 60.0)

    def test_merged_keeps_unspecified_fields(self):
        config = AnimationConfig(color_precision=10).merged(target_fps=30, unknown=True)
        assert config.target_fps == 30
        assert config.color_precision == 10

    def test_dict_round_trip(self):
        config = AnimationConfig(enable_color_smoothing=False)
        assert AnimationConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_unknown_keys(self):
        config = AnimationConfig.from_dict({"target_fps": 120, "theme": "dark"})
        assert config.target_fps == 120

    @pytest.mark.parametrize("field,value", [("target_fps", 0), ("target_fps", -5), ("color_precision", 0)])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValueError):
            AnimationConfig(**{field: value})


class TestOtherConfigs:
    def test_morph_defaults(self):
        config = MorphConfig()
        assert config.interpolation_method == "linear"
        assert config.preserve_area is False
        assert config.normalize_vertices is True

    def test_mandelbrot_defaults(self):
        config = MandelbrotConfig()
        assert (config.center_x, config.center_y, config.zoom) == (-0.5, 0.0, 1.0)
        assert config.max_iterations == 100
        assert config.escape_radius == 2.0

    @pytest.mark.parametrize("field,value", [("width", 0), ("zoom", 0), ("zoom", -1.5), ("max_iterations", 0)])
    def test_mandelbrot_rejects_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            MandelbrotConfig(**{field: value})

    def test_frame_config_nested_thresholds(self):
        config = FrameConfig.from_dict({"target_fps": 30, "quality_thresholds": {"high": 28, "medium": 20, "low": 10}})
        assert config.target_fps == 30
        assert config.quality_thresholds == QualityThresholds(high=28, medium=20, low=10)
        assert config.to_dict()["quality_thresholds"]["high"] == 28


class TestQualityPresets:
    def test_list(self):
        assert list_qualities() == ["high", "medium", "low"]

    def test_lookup_is_case_insensitive(self):
        assert get_quality("LOW").level == "low"

    def test_unknown_falls_back_to_high(self):
        assert get_quality("ultra").level == "high"

    def test_levels_degrade(self):
        high, medium, low = (get_quality(n) for n in list_qualities())
        assert high.fractal_depth_limit > medium.fractal_depth_limit > low.fractal_depth_limit
        assert high.color_precision > medium.color_precision > low.color_precision
