"""
Tests for time series alignment and normalization.
"""

import math

import pytest

from conftest import BASE_TS, DAY, make_series
from src.comparison_chart.aligner import (
    align_series,
    build_alignment,
    common_timeline,
    format_label,
    percent_change,
    value_extent,
)
from src.comparison_chart.config import AlignmentStatus


class TestFormatLabel:
    """Timeline label formatting."""

    def test_numeric_date_for_short_timeframes(self):
        # 2024-01-05 00:00 UTC
        assert format_label(1704412800, "2W") == "1/5/24"
        assert format_label(1704412800, "1D") == "1/5/24"

    def test_month_year_for_one_year(self):
        assert format_label(1704412800, "1Y") == "Jan 24"


class TestPercentChange:
    """Normalization law and base guard."""

    def test_base_is_zero_percent(self):
        assert percent_change(100.0, 100.0) == 0.0

    def test_rounded_to_two_decimals(self):
        assert percent_change(101.2345, 100.0) == 1.23
        assert percent_change(200.0, 300.0) == -33.33

    def test_non_positive_base_yields_none(self):
        assert percent_change(5.0, 0.0) is None
        assert percent_change(5.0, -2.0) is None

    def test_non_finite_inputs_yield_none(self):
        assert percent_change(math.nan, 100.0) is None
        assert percent_change(5.0, math.inf) is None


class TestAlignSeries:
    """Intersection alignment."""

    def test_single_series_keeps_its_timestamps(self):
        series = make_series("AAPL", [100, 110, 105])
        aligned = align_series([series])
        assert [p.timestamp for p in aligned] == [p.timestamp for p in series.points]

    def test_timeline_is_sorted_intersection(self):
        a = make_series("A", [1, 2, 3, 4], timestamps=[40, 10, 30, 20])
        b = make_series("B", [5, 6, 7], timestamps=[30, 20, 50])
        aligned = align_series([a, b])
        assert [p.timestamp for p in aligned] == [20, 30]
        assert common_timeline([a, b]) == [20, 30]

    def test_percent_law(self):
        a = make_series("A", [50, 55, 45])
        b = make_series("B", [200, 210, 220])
        aligned = align_series([a, b])
        assert aligned[0].percent == {"A": 0.0, "B": 0.0}
        assert aligned[1].percent == {"A": 10.0, "B": 5.0}
        assert aligned[2].percent == {"A": -10.0, "B": 10.0}
        assert aligned[2].price == {"A": 45, "B": 220}

    def test_duplicate_timestamp_keeps_last_close(self):
        a = make_series("A", [10, 20, 30], timestamps=[1, 1, 2])
        aligned = align_series([a])
        assert [p.timestamp for p in aligned] == [1, 2]
        assert aligned[0].price == {"A": 20}
        assert aligned[1].percent == {"A": 50.0}

    def test_base_is_first_common_close_not_first_close(self):
        a = make_series("A", [10, 100, 120], timestamps=[1, 2, 3])
        b = make_series("B", [50, 60], timestamps=[2, 3])
        aligned = align_series([a, b])
        assert aligned[0].percent["A"] == 0.0
        assert aligned[1].percent["A"] == 20.0

    def test_zero_base_keeps_price_without_percent(self):
        a = make_series("A", [0, 5, 10])
        b = make_series("B", [100, 110, 120])
        aligned = align_series([a, b])
        for point in aligned:
            assert "A" not in point.percent
            assert "A" in point.price
            assert all(math.isfinite(v) for v in point.percent.values())
        assert aligned[1].percent["B"] == 10.0

    def test_hidden_series_excluded(self):
        a = make_series("A", [1, 2], timestamps=[1, 2])
        b = make_series("B", [1, 2], timestamps=[3, 4], visible=False)
        aligned = align_series([a, b])
        assert [p.timestamp for p in aligned] == [1, 2]
        assert "B" not in aligned[0].percent

    def test_disjoint_series_align_to_empty(self):
        a = make_series("A", [1, 2], timestamps=[1, 2])
        b = make_series("B", [1, 2], timestamps=[3, 4])
        assert align_series([a, b]) == []

    def test_labels_follow_timeframe(self):
        series = make_series("A", [1, 2])
        assert align_series([series], "1Y")[0].label == "Jan 24"
        assert align_series([series], "2W")[0].label == "1/1/24"


class TestBuildAlignment:
    """Fail-together status handling."""

    def test_ready(self):
        result = build_alignment([make_series("A", [1, 2])])
        assert result.status == AlignmentStatus.READY
        assert result.is_ready
        assert len(result.points) == 2
        assert result.message() is None

    def test_one_failure_blocks_whole_group(self):
        series = [make_series("A", [1, 2]), make_series("B", [1, 2])]
        result = build_alignment(series, failures={"B": "timeout"})
        assert result.status == AlignmentStatus.UNAVAILABLE
        assert result.points == []
        assert result.failed_symbols == ["B"]
        assert result.errors == {"B": "timeout"}
        assert "B" in result.message()

    def test_failure_of_hidden_series_is_ignored(self):
        series = [make_series("A", [1, 2]), make_series("B", [], visible=False)]
        result = build_alignment(series, failures={"B": "timeout"})
        assert result.status == AlignmentStatus.READY

    def test_pending_series_reports_loading(self):
        series = [make_series("A", [1, 2]), make_series("B", [])]
        result = build_alignment(series, loaded=["A"])
        assert result.status == AlignmentStatus.LOADING
        assert result.pending_symbols == ["B"]

    def test_no_common_timestamps_reports_empty(self):
        series = [
            make_series("A", [1], timestamps=[BASE_TS]),
            make_series("B", [1], timestamps=[BASE_TS + DAY]),
        ]
        result = build_alignment(series)
        assert result.status == AlignmentStatus.EMPTY

    def test_no_series_reports_empty(self):
        assert build_alignment([]).status == AlignmentStatus.EMPTY


class TestValueExtent:
    """Value extent over visible symbols."""

    def test_extent_over_symbols(self):
        aligned = align_series([make_series("A", [100, 90, 130]), make_series("B", [10, 11, 12])])
        assert value_extent(aligned, ["A", "B"]) == (-10.0, 30.0)
        assert value_extent(aligned, ["B"]) == (0.0, 20.0)

    def test_extent_empty(self):
        assert value_extent([], ["A"]) is None
