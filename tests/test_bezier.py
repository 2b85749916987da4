"""
Tests for Bezier experience segments.
"""
from __future__ import annotations

import pytest

from core.progression import (
    BezierPoint,
    BezierSegment,
    CubicBezier,
    bezier_segment_exp,
    cubic_bezier,
    sample_segment,
)
from core.progression.bezier import level_to_t


@pytest.fixture
def segment() -> BezierSegment:
    return BezierSegment("1", 1, 10, 100, 1500, BezierPoint(0.33, 0.1), BezierPoint(0.67, 0.9))


class TestCubicBezier:
    def test_endpoints(self):
        assert cubic_bezier(0.0, 1, 2, 3, 4) == 1
        assert cubic_bezier(1.0, 1, 2, 3, 4) == 4

    def test_from_segment_scales_control_ratios(self, segment):
        points = CubicBezier.from_segment(segment).points

        assert points == pytest.approx((100, 240, 1360, 1500))

    def test_parameter_is_clamped(self, segment):
        curve = CubicBezier.from_segment(segment)

        assert curve.evaluate(-1) == curve.evaluate(0)
        assert curve.evaluate(2) == curve.evaluate(1)


class TestSegmentExp:
    def test_start_and_end_levels_hit_endpoints_exactly(self, segment):
        assert bezier_segment_exp(1, segment) == 100
        assert bezier_segment_exp(10, segment) == 1500

    def test_monotone_for_increasing_exp_and_ordered_controls(self, segment):
        values = [bezier_segment_exp(level, segment) for level in range(1, 11)]

        assert values == sorted(values)

    def test_third_point_controls_are_linear(self):
        linear = BezierSegment("1", 1, 11, 0, 1000, BezierPoint(0.33, 1 / 3), BezierPoint(0.67, 2 / 3))
        curve = CubicBezier.from_segment(linear)

        for level in range(1, 12):
            t = level_to_t(level, linear)
            assert curve.evaluate(t) == pytest.approx(100 * (level - 1))
            assert abs(bezier_segment_exp(level, linear) - 100 * (level - 1)) <= 1

    def test_control_x_does_not_change_values(self, segment):
        shifted = BezierSegment(
            "1", 1, 10, 100, 1500, BezierPoint(0.9, 0.1), BezierPoint(0.1, 0.9)
        )

        for level in range(1, 11):
            assert bezier_segment_exp(level, shifted) == bezier_segment_exp(level, segment)

    def test_negative_overshoot_is_clamped_to_zero(self):
        dipping = BezierSegment("1", 1, 3, 100, 0, BezierPoint(0.33, 3.0), BezierPoint(0.67, 3.0))

        assert bezier_segment_exp(2, dipping) == 0

    def test_levels_outside_segment_are_clamped(self, segment):
        assert bezier_segment_exp(0, segment) == 100
        assert bezier_segment_exp(15, segment) == 1500

    def test_degenerate_segment_maps_to_start(self):
        flat = BezierSegment("1", 5, 5, 300, 900)

        assert level_to_t(5, flat) == 0.0
        assert bezier_segment_exp(5, flat) == 300


class TestSampling:
    def test_default_sample_count_and_endpoints(self, segment):
        samples = sample_segment(segment)

        assert len(samples) == 20
        assert samples[0] == pytest.approx((1, 100))
        assert samples[-1] == pytest.approx((10, 1500))

    def test_too_few_points(self, segment):
        with pytest.raises(ValueError):
            sample_segment(segment, num_points=1)
