"""
Unit tests for procedural shape generators.

Run with: python -m pytest sacred_engine/tests/test_shapes.py -v
"""

import logging
import math

import numpy as np
import pytest

from sacred_engine.shapes import (
    SHAPE_GENERATORS,
    ShapeKind,
    SpiralType,
    decay_spiral,
    generate,
    get_generator,
    list_shapes,
    spiral,
    star,
)
from sacred_engine.timing import GOLDEN_RATIO

CENTER = (10.0, -5.0)


def _radii(path, center=CENTER):
    return np.hypot(path.points[:, 0] - center[0], path.points[:, 1] - center[1])


class TestRegistry:
    @pytest.mark.parametrize("kind,count,closed", [
        ("circle", 64, True),
        ("hexagon", 6, True),
        ("pentagon", 5, True),
        ("polygon", 6, True),
        ("star", 10, True),
        ("lissajous", 101, False),
        ("spiral", 201, False),
        ("decay_spiral", 101, False),
    ])
    def test_point_counts_and_closed_flags(self, kind, count, closed):
        path = generate(kind, CENTER, 3.0)
        assert len(path) == count
        assert path.points.shape == (count, 2)
        assert path.closed is closed

    def test_every_kind_is_registered(self):
        assert set(list_shapes()) == {kind.value for kind in ShapeKind}

    def test_enum_lookup(self):
        assert get_generator(ShapeKind.STAR) is SHAPE_GENERATORS["star"]

    def test_unknown_kind(self, caplog):
        assert get_generator("dodecahedron") is None
        with caplog.at_level(logging.WARNING, logger="sacred_engine.shapes"):
            path = generate("dodecahedron", CENTER, 1.0)
        assert len(path) == 0
        assert path.closed is False
        assert "Unknown shape kind" in caplog.text

    def test_kind_specific_params(self):
        assert len(generate("polygon", CENTER, 1.0, sides=9)) == 9
        assert len(generate("circle", CENTER, 1.0, segments=12)) == 12

    @pytest.mark.parametrize("kind,params", [
        ("circle", {"segments": 0}),
        ("polygon", {"sides": 0}),
        ("star", {"points": 0}),
        ("lissajous", {"segments": -1}),
        ("spiral", {"segments": 0}),
    ])
    def test_non_positive_counts_give_empty_path(self, kind, params):
        assert len(generate(kind, CENTER, 1.0, **params)) == 0

    def test_to_list(self):
        points = generate("hexagon", (0.0, 0.0), 1.0).to_list()
        assert points[0] == pytest.approx((1.0, 0.0))
        assert all(isinstance(p, tuple) for p in points)


class TestClosedShapes:
    @pytest.mark.parametrize("kind", ["circle", "hexagon", "pentagon", "polygon"])
    def test_vertices_on_radius(self, kind):
        np.testing.assert_allclose(_radii(generate(kind, CENTER, 4.0)), 4.0)

    def test_hexagon_starts_on_x_axis(self):
        first = generate("hexagon", CENTER, 2.0).points[0]
        np.testing.assert_allclose(first, (CENTER[0] + 2.0, CENTER[1]))

    def test_pentagon_starts_at_top(self):
        first = generate("pentagon", CENTER, 2.0).points[0]
        np.testing.assert_allclose(first, (CENTER[0], CENTER[1] - 2.0), atol=1e-12)

    def test_star_alternates_radii(self):
        radii = _radii(star(CENTER, 5.0, points=6, inner_radius=0.5))
        np.testing.assert_allclose(radii[0::2], 5.0)
        np.testing.assert_allclose(radii[1::2], 2.5)


class TestParametricShapes:
    def test_lissajous_start(self):
        first = generate("lissajous", CENTER, 2.0).points[0]
        np.testing.assert_allclose(first, (CENTER[0] + 2.0, CENTER[1]), atol=1e-12)

    def test_lissajous_stays_in_bounding_box(self):
        points = generate("lissajous", (0.0, 0.0), 3.0, a=5, b=4).points
        assert np.all(np.abs(points) <= 3.0 + 1e-12)

    @pytest.mark.parametrize("spiral_type,first,last", [
        (SpiralType.GOLDEN, 0.8, 0.8 * GOLDEN_RATIO ** -8),
        (SpiralType.ARCHIMEDEAN, 1.0, 0.15),
        (SpiralType.LOGARITHMIC, 0.9, 0.9 * math.exp(-0.8)),
    ])
    def test_spiral_family_radii(self, spiral_type, first, last):
        radii = _radii(spiral(CENTER, 10.0, spiral_type=spiral_type.value))
        assert radii[0] == pytest.approx(10.0 * first)
        assert radii[-1] == pytest.approx(10.0 * last)

    def test_spiral_radius_shrinks(self):
        radii = _radii(spiral(CENTER, 10.0))
        assert np.all(np.diff(radii) < 0)

    def test_unknown_spiral_type_is_golden(self):
        np.testing.assert_allclose(
            spiral(CENTER, 10.0, spiral_type="hyperbolic").points,
            spiral(CENTER, 10.0, spiral_type="golden").points,
        )

    def test_decay_spiral_linear_decay(self):
        radii = _radii(decay_spiral(CENTER, 10.0, decay=0.2))
        assert radii[0] == pytest.approx(10.0)
        assert radii[-1] == pytest.approx(8.0)
        assert radii[50] == pytest.approx(9.0)

    def test_decay_spiral_rotation_in_degrees(self):
        first = decay_spiral(CENTER, 10.0, rotation=90).points[0]
        np.testing.assert_allclose(first, (CENTER[0], CENTER[1] + 10.0), atol=1e-9)

    def test_spiral_variants_differ(self):
        a = generate("spiral", CENTER, 10.0)
        b = generate("decay_spiral", CENTER, 10.0)
        assert len(a) != len(b)
