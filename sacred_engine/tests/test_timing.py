"""
Unit tests for symmetric fractal timing and per-frame animation parameters.

Run with: python -m pytest sacred_engine/tests/test_timing.py -v
"""

import math

import pytest

from sacred_engine.timing import (
    GOLDEN_RATIO,
    AnimationMode,
    AnimationSettings,
    ShapeSettings,
    adjusted_time,
    calculate_animation_params,
    calculate_motion_params,
    seeded_random,
    symmetric_phase,
)


def _shape(mode, **animation):
    return ShapeSettings(size=100.0, opacity=1.0, animation=AnimationSettings(mode=mode, **animation))


# ===========================================================================
# Symmetric phase
# ===========================================================================


class TestSymmetricPhase:
    @pytest.mark.parametrize("depth", [1, 2, 3])
    def test_children_are_equally_spaced(self, depth):
        phases = [symmetric_phase(10.0, depth, i, 4) for i in range(4)]
        expected_gap = (math.pi / 2) * GOLDEN_RATIO ** (-depth)
        for a, b in zip(phases, phases[1:]):
            assert b - a == pytest.approx(expected_gap)

    @pytest.mark.parametrize("depth", [0, 1, 4])
    def test_next_depth_scales_offsets_by_inverse_phi(self, depth):
        base = 3.0
        for i in range(1, 4):
            offset = symmetric_phase(base, depth, i, 4) - base
            deeper = symmetric_phase(base, depth + 1, i, 4) - base
            assert deeper == pytest.approx(offset / GOLDEN_RATIO)

    def test_first_child_has_no_offset(self):
        assert symmetric_phase(7.5, 2, 0, 6) == 7.5

    @pytest.mark.parametrize("total_children", [0, -3])
    def test_no_siblings_keeps_base_time(self, total_children):
        assert symmetric_phase(7.5, 2, 1, total_children) == 7.5

    def test_time_scale_multiplies_offset(self):
        plain = symmetric_phase(0.0, 1, 1, 4)
        scaled = symmetric_phase(0.0, 1, 1, 4, time_scale=1000.0)
        assert scaled == pytest.approx(plain * 1000.0)

    def test_root_and_childless_keep_base_time(self):
        assert adjusted_time(5.0, 0, 2, 4) == 5.0
        assert adjusted_time(5.0, 2, 0, 0) == 5.0
        assert adjusted_time(5.0, 1, 1, 4) == pytest.approx(symmetric_phase(5.0, 1, 1, 4))


# ===========================================================================
# Settings records
# ===========================================================================


class TestSettings:
    def test_from_dict_accepts_camel_case(self):
        shape = ShapeSettings.from_dict({
            "type": "star",
            "vertices": 5,
            "position": {"offsetX": 10, "offsetY": 20},
            "animation": {"mode": "orbit", "fadeIn": 0.3, "variableTiming": True},
        })
        assert shape.offset_x == 10
        assert shape.offset_y == 20
        assert shape.animation.mode == AnimationMode.ORBIT
        assert shape.animation.fade_in == 0.3
        assert shape.animation.variable_timing is True
        assert shape.animation.fade_out == 0.2

    def test_unknown_mode_is_static(self):
        assert AnimationSettings.from_dict({"mode": "teleport"}).mode is None

    def test_missing_animation(self):
        assert ShapeSettings.from_dict({"type": "circle", "animation": None}).animation is None

    def test_unique_id(self):
        shape = ShapeSettings(type="star", vertices=5, offset_x=10, offset_y=20)
        assert shape.unique_id == pytest.approx(ord("s") + 50 + 1 + 2)

    def test_seeded_random_range_and_determinism(self):
        values = [seeded_random(i * 1.7) for i in range(100)]
        assert all(0.0 <= v < 1.0 for v in values)
        assert seeded_random(42.0) == seeded_random(42.0)


# ===========================================================================
# Animation parameters
# ===========================================================================


class TestAnimationParams:
    def test_static_shape(self):
        params = calculate_animation_params(3.0, ShapeSettings(size=80, opacity=0.6, animation=None))
        assert params.size == 80
        assert params.opacity == pytest.approx(0.6)
        assert params.rotation == 0.0

    def test_pulse_at_time_zero(self):
        params = calculate_animation_params(0.0, _shape(AnimationMode.PULSE))
        assert params.size == pytest.approx(125.0)
        assert params.opacity == pytest.approx(0.85)

    def test_opacity_is_clamped(self):
        shape = ShapeSettings(opacity=5.0, animation=AnimationSettings(mode=AnimationMode.PULSE))
        assert calculate_animation_params(0.0, shape).opacity == 1.0

    def test_rotation(self):
        shape = _shape(AnimationMode.GROW, rotation=True, rotation_speed=0.1)
        assert calculate_animation_params(10.0, shape).rotation == pytest.approx(1.0)

    def test_fractal_child_uses_shifted_time(self):
        params = calculate_animation_params(2.0, _shape(AnimationMode.PULSE), 1, 1, 4)
        assert params.adjusted_time == pytest.approx(symmetric_phase(2.0, 1, 1, 4))


class TestMotionParams:
    def test_grow_follows_loop_progress(self):
        params = calculate_motion_params(1500.0, _shape(AnimationMode.GROW))
        assert params.progress == pytest.approx(0.25)
        assert params.dynamic_radius == pytest.approx(25.0)
        assert params.final_opacity == pytest.approx(1.0)

    def test_reverse(self):
        params = calculate_motion_params(1500.0, _shape(AnimationMode.GROW, reverse=True))
        assert params.progress == pytest.approx(0.75)
        assert params.dynamic_radius == pytest.approx(75.0)

    def test_grow_fades_in(self):
        params = calculate_motion_params(300.0, _shape(AnimationMode.GROW))
        assert params.final_opacity == pytest.approx(0.25)

    def test_loop_is_periodic(self):
        a = calculate_motion_params(1234.0, _shape(AnimationMode.GROW))
        b = calculate_motion_params(1234.0 + 6000.0, _shape(AnimationMode.GROW))
        assert a.dynamic_radius == pytest.approx(b.dynamic_radius)

    def test_fractal_child_offset_in_milliseconds(self):
        params = calculate_motion_params(1000.0, _shape(AnimationMode.PULSE), 1, 1, 4)
        expected = 1000.0 + (math.pi / 2) / GOLDEN_RATIO * 1000.0
        assert params.adjusted_time == pytest.approx(expected)

    def test_stagger_delays_root_shapes(self):
        shape = _shape(AnimationMode.GROW, stagger_delay=100.0)
        params = calculate_motion_params(1500.0, shape)
        assert params.adjusted_time == pytest.approx(1500.0 - shape.unique_id % 100.0)

    @pytest.mark.parametrize("mode", list(AnimationMode))
    def test_opacity_stays_in_range(self, mode):
        shape = ShapeSettings(opacity=1.0, animation=AnimationSettings(mode=mode, intensity=1.0, speed=0.01))
        for t in range(0, 20000, 137):
            params = calculate_motion_params(float(t), shape)
            assert 0.0 <= params.final_opacity <= 1.0

    def test_orbit_moves_center(self):
        params = calculate_motion_params(100.0, _shape(AnimationMode.ORBIT, speed=0.01, intensity=1.0))
        assert (params.offset_x, params.offset_y) != (0.0, 0.0)
