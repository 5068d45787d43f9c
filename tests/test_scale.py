"""
Tests for LinearScale and ChartLayout.
"""

import math

import pytest

from src.comparison_chart.scale import ChartLayout, LinearScale, value_extent_of
from src.comparison_chart.types import AlignedPoint


class TestLinearScale:
    """Forward and inverse mapping."""

    def test_to_range_is_affine(self):
        scale = LinearScale(0.0, 10.0, 500.0, 0.0)
        assert scale.to_range(0.0) == 500.0
        assert scale.to_range(10.0) == 0.0
        assert scale.to_range(5.0) == 250.0

    def test_inverse_round_trips(self):
        scale = LinearScale(-3.0, 7.0, 400.0, 20.0)
        for value in (-3.0, 0.0, 2.5, 7.0):
            assert scale.to_domain(scale.to_range(value)) == pytest.approx(value)

    def test_zero_domain_span_has_no_inverse(self):
        scale = LinearScale(5.0, 5.0, 500.0, 0.0)
        assert not scale.is_invertible()
        assert scale.to_domain(100.0) is None

    def test_zero_domain_maps_to_range_midpoint(self):
        scale = LinearScale(5.0, 5.0, 500.0, 0.0)
        assert scale.to_range(5.0) == 250.0

    def test_zero_range_span_has_no_inverse(self):
        scale = LinearScale(0.0, 10.0, 100.0, 100.0)
        assert scale.to_domain(100.0) is None

    def test_non_finite_pixel_has_no_inverse(self):
        scale = LinearScale(0.0, 10.0, 500.0, 0.0)
        assert scale.to_domain(math.nan) is None
        assert scale.to_domain(math.inf) is None

    def test_clamp_domain(self):
        scale = LinearScale(0.0, 10.0, 500.0, 0.0)
        assert scale.clamp_domain(-1.0) == 0.0
        assert scale.clamp_domain(11.0) == 10.0
        assert scale.clamp_domain(4.0) == 4.0

    def test_pixels_per_unit(self):
        scale = LinearScale(0.0, 9.0, 0.0, 900.0)
        assert scale.pixels_per_unit() == 100.0
        assert LinearScale(1.0, 1.0, 0.0, 900.0).pixels_per_unit() is None


class TestScaleFactories:
    """for_values / for_timeline construction."""

    def test_for_values_pads_five_percent(self):
        scale = LinearScale.for_values([0.0, 10.0, 4.0], pixel_bottom=500.0, pixel_top=0.0)
        assert scale.domain_min == pytest.approx(-0.5)
        assert scale.domain_max == pytest.approx(10.5)
        assert scale.range_min == 500.0
        assert scale.range_max == 0.0

    def test_for_values_ignores_non_finite(self):
        scale = LinearScale.for_values([1.0, math.nan, 3.0], 100.0, 0.0, padding_fraction=0.0)
        assert (scale.domain_min, scale.domain_max) == (1.0, 3.0)

    def test_for_values_empty_returns_none(self):
        assert LinearScale.for_values([], 100.0, 0.0) is None

    def test_for_values_single_value_is_degenerate(self):
        scale = LinearScale.for_values([2.0, 2.0], 100.0, 0.0)
        assert not scale.is_invertible()

    def test_for_timeline(self):
        scale = LinearScale.for_timeline(11, 0.0, 1000.0)
        assert scale.to_range(5) == 500.0
        assert LinearScale.for_timeline(0, 0.0, 1000.0) is None

    def test_value_extent_of(self):
        assert value_extent_of([3.0, -1.0, 2.0]) == (-1.0, 3.0)
        assert value_extent_of([None, math.inf]) is None


class TestChartLayout:
    """Timeline lookups."""

    def test_index_of(self):
        timeline = tuple(
            AlignedPoint(timestamp=ts, label="", percent={}, price={}) for ts in (10, 20, 30)
        )
        layout = ChartLayout(timeline=timeline)
        assert layout.index_of(20) == 1
        assert layout.index_of(25) is None

    def test_default_layout_has_no_scales(self):
        layout = ChartLayout()
        assert layout.value_scale is None
        assert layout.time_scale is None
        assert layout.timeline == ()
