"""
Tests for CSV series loading and concurrent group fetching.
"""

import shutil
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import BASE_TS, DAY, StaticFetcher
from src.comparison_chart.errors import SeriesFetchError
from src.comparison_chart.series_source import CsvSeriesSource, fetch_series_group


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    path = tempfile.mkdtemp()
    yield Path(path)
    shutil.rmtree(path)


def write_csv(data_dir, symbol, rows, header="time,open,high,low,close"):
    lines = [header] + rows
    (data_dir / f"{symbol}.csv").write_text("\n".join(lines) + "\n")


def daily_rows(closes, start=BASE_TS):
    return [f"{start + i * DAY},0,0,0,{c}" for i, c in enumerate(closes)]


class TestCsvSeriesSource:
    """CSV loading."""

    def test_loads_unix_time_and_close(self, data_dir):
        write_csv(data_dir, "AAPL", daily_rows([100, 101, 102]))
        points = CsvSeriesSource(str(data_dir)).fetch("AAPL", "1M")
        assert [p.close for p in points] == [100.0, 101.0, 102.0]
        assert points[0].timestamp == BASE_TS

    def test_symbol_lookup_is_case_insensitive(self, data_dir):
        write_csv(data_dir, "AAPL", daily_rows([100]))
        assert len(CsvSeriesSource(str(data_dir)).fetch("aapl", "1M")) == 1

    def test_iso_timestamp_column(self, data_dir):
        write_csv(
            data_dir, "MSFT",
            ["2024-01-01T00:00:00Z,10", "2024-01-02T00:00:00Z,11"],
            header="timestamp,close",
        )
        points = CsvSeriesSource(str(data_dir)).fetch("MSFT", "1M")
        assert [p.timestamp for p in points] == [BASE_TS, BASE_TS + DAY]

    def test_sorted_and_deduplicated(self, data_dir):
        rows = [
            f"{BASE_TS + DAY},0,0,0,2",
            f"{BASE_TS},0,0,0,1",
            f"{BASE_TS + DAY},0,0,0,3",
        ]
        write_csv(data_dir, "X", rows)
        points = CsvSeriesSource(str(data_dir)).fetch("X", "1M")
        assert [(p.timestamp, p.close) for p in points] == [(BASE_TS, 1.0), (BASE_TS + DAY, 3.0)]

    def test_window_anchored_at_last_timestamp(self, data_dir):
        write_csv(data_dir, "X", daily_rows(list(range(1, 31))))
        points = CsvSeriesSource(str(data_dir)).fetch("X", "5D")
        # Last timestamp plus the five days before it
        assert len(points) == 6
        assert points[-1].close == 30.0

    def test_custom_range(self, data_dir):
        write_csv(data_dir, "X", daily_rows(list(range(1, 11))))
        start = datetime(2024, 1, 3, tzinfo=timezone.utc)
        end = datetime(2024, 1, 5)
        points = CsvSeriesSource(str(data_dir)).fetch("X", "Custom", start, end)
        assert [p.close for p in points] == [3.0, 4.0, 5.0]

    def test_single_day_custom_range_covers_whole_day(self, data_dir):
        hour = 3600
        day_start = BASE_TS + 2 * DAY
        rows = [
            f"{day_start - hour},0,0,0,1",
            f"{day_start},0,0,0,2",
            f"{day_start + 15 * hour},0,0,0,3",
            f"{day_start + DAY - 1},0,0,0,4",
            f"{day_start + DAY},0,0,0,5",
        ]
        write_csv(data_dir, "X", rows)
        day = datetime(2024, 1, 3)
        points = CsvSeriesSource(str(data_dir)).fetch("X", "Custom", day, day)
        assert [p.close for p in points] == [2.0, 3.0, 4.0]

    def test_missing_file_raises(self, data_dir):
        with pytest.raises(SeriesFetchError) as exc_info:
            CsvSeriesSource(str(data_dir)).fetch("NOPE", "1M")
        assert exc_info.value.symbol == "NOPE"

    def test_missing_columns_raise(self, data_dir):
        write_csv(data_dir, "BAD", ["1,2"], header="foo,bar")
        with pytest.raises(SeriesFetchError):
            CsvSeriesSource(str(data_dir)).fetch("BAD", "1M")

    def test_unknown_timeframe_raises(self, data_dir):
        write_csv(data_dir, "X", daily_rows([1]))
        with pytest.raises(SeriesFetchError):
            CsvSeriesSource(str(data_dir)).fetch("X", "7W")

    def test_available_symbols(self, data_dir):
        write_csv(data_dir, "msft", daily_rows([1]))
        write_csv(data_dir, "AAPL", daily_rows([1]))
        assert CsvSeriesSource(str(data_dir)).available_symbols() == ["AAPL", "MSFT"]


class TestFetchSeriesGroup:
    """Concurrent, independent fetches."""

    def test_one_result_per_symbol_in_order(self):
        fetcher = StaticFetcher({"A": [1, 2], "B": [3, 4]})
        results = fetch_series_group(["B", "A"], fetcher, "2W")
        assert list(results) == ["B", "A"]
        assert all(r.ok for r in results.values())
        assert [p.close for p in results["A"].points] == [1, 2]

    def test_failure_isolated_to_its_symbol(self):
        fetcher = StaticFetcher({"A": [1, 2]})
        results = fetch_series_group(["A", "MISSING"], fetcher, "2W")
        assert results["A"].ok
        assert not results["MISSING"].ok
        assert results["MISSING"].error == "not found"
        assert results["MISSING"].points == []

    def test_fetches_run_concurrently(self):
        barrier = threading.Barrier(3, timeout=5)

        class BarrierFetcher:
            def fetch(self, symbol, timeframe, start=None, end=None):
                barrier.wait()
                return []

        results = fetch_series_group(["A", "B", "C"], BarrierFetcher(), "2W")
        assert len(results) == 3

    def test_empty_symbol_list(self):
        assert fetch_series_group([], StaticFetcher({}), "2W") == {}
