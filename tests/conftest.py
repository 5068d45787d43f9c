"""
Shared test fixtures and helpers for comparison chart tests.
"""

from typing import List, Optional, Sequence

import pytest

from src.comparison_chart.aligner import align_series
from src.comparison_chart.annotation_model import AnnotationStore
from src.comparison_chart.scale import ChartLayout, LinearScale
from src.comparison_chart.types import RawPoint, TickerSeries

# 2024-01-01 00:00 UTC
BASE_TS = 1704067200
DAY = 86400


def make_series(
    symbol: str,
    closes: Sequence[float],
    timestamps: Optional[Sequence[int]] = None,
    visible: bool = True,
    color_index: int = 0,
) -> TickerSeries:
    """Helper to create a TickerSeries for testing.

    Args:
        symbol: Ticker symbol
        closes: Close prices
        timestamps: Unix timestamps (defaults to one per day from BASE_TS)
        visible: Visibility flag
        color_index: Palette slot

    Returns:
        TickerSeries with one RawPoint per close
    """
    if timestamps is None:
        timestamps = [BASE_TS + i * DAY for i in range(len(closes))]
    return TickerSeries(
        symbol=symbol,
        points=[RawPoint(timestamp=ts, close=c) for ts, c in zip(timestamps, closes)],
        visible=visible,
        color_index=color_index,
    )


def make_layout(
    series: List[TickerSeries],
    value_domain=(-10.0, 10.0),
    width: float = 1000.0,
    height: float = 500.0,
) -> ChartLayout:
    """Helper to build a layout over aligned series with a fixed value domain.

    The value axis maps value_domain onto [height, 0] (y grows downwards);
    the time axis maps timeline indices onto [0, width].
    """
    timeline = tuple(align_series(series))
    return ChartLayout(
        value_scale=LinearScale(value_domain[0], value_domain[1], height, 0.0),
        time_scale=LinearScale.for_timeline(len(timeline), 0.0, width),
        timeline=timeline,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingGateway:
    """Persistence gateway that records every save."""

    def __init__(self, fail: bool = False):
        self.saves = []
        self.fail = fail

    def save(self, session_id, payload):
        if self.fail:
            raise OSError("disk full")
        self.saves.append((session_id, payload))


class StaticFetcher:
    """Series fetcher serving fixed closes per symbol; unknown symbols fail."""

    def __init__(self, closes_by_symbol, timestamps=None):
        self.closes_by_symbol = closes_by_symbol
        self.timestamps = timestamps or {}
        self.calls = []

    def fetch(self, symbol, timeframe, start=None, end=None):
        from src.comparison_chart.errors import SeriesFetchError

        self.calls.append((symbol, timeframe))
        if symbol not in self.closes_by_symbol:
            raise SeriesFetchError(symbol, "not found")
        return make_series(
            symbol, self.closes_by_symbol[symbol], self.timestamps.get(symbol)
        ).points


@pytest.fixture
def store():
    """Empty annotation store."""
    return AnnotationStore()


@pytest.fixture
def clock():
    return FakeClock()
