"""
Tests for the debounced session saver.
"""

import pytest

from conftest import FakeClock, RecordingGateway
from src.comparison_chart.models import SessionSnapshot, TextMarker
from src.comparison_chart.persistence import DebouncedSessionSaver
from src.comparison_chart.types import TickerSeries


class SnapshotHolder:
    """Mutable snapshot source standing in for a session."""

    def __init__(self):
        self.snapshot = SessionSnapshot(session_id="s1", timeframe="2W")

    def __call__(self):
        return self.snapshot

    def add_ticker(self, symbol):
        self.snapshot.tickers.append(TickerSeries(symbol=symbol))


@pytest.fixture
def holder():
    return SnapshotHolder()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def saver(gateway, holder, clock):
    return DebouncedSessionSaver(gateway, holder, debounce_seconds=2.0, clock=clock)


class TestDebounce:
    """Burst collapsing."""

    def test_nothing_written_before_window_elapses(self, saver, gateway, holder, clock):
        holder.add_ticker("AAPL")
        saver.notify()
        clock.advance(1.9)
        assert saver.poll() is False
        assert gateway.saves == []
        assert saver.pending

    def test_written_once_after_window(self, saver, gateway, holder, clock):
        holder.add_ticker("AAPL")
        saver.notify()
        clock.advance(2.0)
        assert saver.poll() is True
        assert len(gateway.saves) == 1
        assert not saver.pending

    def test_burst_collapses_into_single_write(self, saver, gateway, holder, clock):
        for symbol in ("AAPL", "MSFT", "NVDA"):
            holder.add_ticker(symbol)
            saver.notify()
            clock.advance(1.0)
        assert saver.poll() is False
        clock.advance(1.0)
        assert saver.poll() is True
        session_id, payload = gateway.saves[0]
        assert session_id == "s1"
        assert [t['symbol'] for t in payload['tickers']] == ["AAPL", "MSFT", "NVDA"]
        assert len(gateway.saves) == 1

    def test_poll_without_notify_does_nothing(self, saver, gateway, holder, clock):
        holder.add_ticker("AAPL")
        clock.advance(10)
        assert saver.poll() is False
        assert gateway.saves == []


class TestSkipRules:
    """Identical and empty snapshots."""

    def test_identical_state_skipped(self, saver, gateway, holder):
        holder.add_ticker("AAPL")
        assert saver.flush() is True
        assert saver.flush() is False
        assert len(gateway.saves) == 1

    def test_changed_state_written_again(self, saver, gateway, holder):
        holder.add_ticker("AAPL")
        saver.flush()
        holder.snapshot.annotations.append(TextMarker.create(1, 2.0))
        assert saver.flush() is True
        assert len(gateway.saves) == 2

    def test_empty_session_never_written(self, saver, gateway):
        saver.notify()
        assert saver.flush() is False
        assert gateway.saves == []

    def test_reset_with_snapshot_suppresses_identical_write(self, saver, gateway, holder):
        holder.add_ticker("AAPL")
        saver.reset(last_saved=holder.snapshot)
        assert saver.flush() is False
        assert gateway.saves == []

    def test_reset_drops_pending(self, saver, holder):
        holder.add_ticker("AAPL")
        saver.notify()
        saver.reset()
        assert not saver.pending


class TestFailures:
    """Gateway errors never escape."""

    def test_gateway_error_is_logged_not_raised(self, holder, clock, caplog):
        saver = DebouncedSessionSaver(RecordingGateway(fail=True), holder, clock=clock)
        holder.add_ticker("AAPL")
        assert saver.flush() is False
        assert "Failed to save session s1" in caplog.text

    def test_no_gateway(self, holder):
        saver = DebouncedSessionSaver(None, holder)
        holder.add_ticker("AAPL")
        saver.notify()
        assert saver.flush() is False
        assert not saver.pending
