"""
Time Series Aligner

Aligns per-ticker close series onto the strict intersection of their
timestamps and normalizes each series to percent change from its first
common close. No resampling or interpolation is performed: a timestamp
missing from any visible series is dropped from the timeline.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import AlignmentStatus
from .scale import value_extent_of
from .types import AlignedPoint, AlignmentResult, RawPoint, TickerSeries

logger = logging.getLogger(__name__)


def format_label(timestamp: int, timeframe: str) -> str:
    """
    Format a timeline label for a timestamp (UTC).

    Examples:
        >>> format_label(1704412800, "2W")
        '1/5/24'
        >>> format_label(1704412800, "1Y")
        'Jan 24'
    """
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    if timeframe == "1Y":
        return f"{dt.strftime('%b')} {dt.strftime('%y')}"
    return f"{dt.month}/{dt.day}/{dt.strftime('%y')}"


def percent_change(close: float, base: float) -> Optional[float]:
    """
    Percent change from base, rounded to 2 decimals.

    Returns None when the base is not a positive finite price.
    """
    if not math.isfinite(base) or base <= 0 or not math.isfinite(close):
        return None
    return round((close - base) / base * 100, 2)


def common_timeline(series: Sequence[TickerSeries]) -> List[int]:
    """Sorted intersection of timestamps across the given series."""
    if not series:
        return []
    common = {p.timestamp for p in series[0].points}
    for s in series[1:]:
        common &= {p.timestamp for p in s.points}
    return sorted(common)


def _close_by_timestamp(points: Iterable[RawPoint]) -> Dict[int, float]:
    """Close for each timestamp; the last one wins on duplicates."""
    return {p.timestamp: p.close for p in points}


def align_series(series: Sequence[TickerSeries], timeframe: str = "2W") -> List[AlignedPoint]:
    """
    Align the visible series onto their common timeline.

    Hidden series are ignored. A series whose base close is zero or
    negative contributes prices but no percent entries.

    Args:
        series: Ticker series (only visible ones participate)
        timeframe: Active timeframe, used for label formatting

    Returns:
        One AlignedPoint per common timestamp, ascending. Empty when the
        intersection is empty.
    """
    visible = [s for s in series if s.visible]
    timeline = common_timeline(visible)
    if not timeline:
        return []

    closes = {s.symbol: _close_by_timestamp(s.points) for s in visible}
    first = timeline[0]
    bases = {symbol: by_ts[first] for symbol, by_ts in closes.items()}

    for symbol, base in bases.items():
        if percent_change(base, base) is None:
            logger.warning(f"Base price for {symbol} is {base}; percent values omitted")

    aligned = []
    for ts in timeline:
        percent: Dict[str, float] = {}
        price: Dict[str, float] = {}
        for s in visible:
            close = closes[s.symbol][ts]
            price[s.symbol] = close
            pct = percent_change(close, bases[s.symbol])
            if pct is not None:
                percent[s.symbol] = pct
        aligned.append(AlignedPoint(
            timestamp=ts,
            label=format_label(ts, timeframe),
            percent=percent,
            price=price,
        ))
    return aligned


def build_alignment(
    series: Sequence[TickerSeries],
    timeframe: str = "2W",
    failures: Optional[Mapping[str, str]] = None,
    loaded: Optional[Iterable[str]] = None
) -> AlignmentResult:
    """
    Align the group, honoring the fail-together rule.

    A single failed visible series blocks alignment for the whole group;
    the result names the failed symbols instead of carrying partial data.

    Args:
        series: All ticker series
        timeframe: Active timeframe
        failures: symbol -> error message for fetches that failed
        loaded: Symbols whose fetch has completed successfully. None means
            every series is considered loaded.
    """
    failures = failures or {}
    visible = [s for s in series if s.visible]

    failed = [s.symbol for s in visible if s.symbol in failures]
    if failed:
        return AlignmentResult(
            status=AlignmentStatus.UNAVAILABLE,
            failed_symbols=failed,
            errors={symbol: failures[symbol] for symbol in failed},
        )

    if loaded is not None:
        loaded_set = set(loaded)
        pending = [s.symbol for s in visible if s.symbol not in loaded_set]
        if pending:
            return AlignmentResult(status=AlignmentStatus.LOADING, pending_symbols=pending)

    points = align_series(visible, timeframe)
    if not points:
        return AlignmentResult(status=AlignmentStatus.EMPTY)
    return AlignmentResult(status=AlignmentStatus.READY, points=points)


def value_extent(points: Sequence[AlignedPoint], symbols: Iterable[str]) -> Optional[Tuple[float, float]]:
    """Min/max percent across the given symbols, or None if no values."""
    symbols = list(symbols)
    return value_extent_of(
        point.percent[symbol]
        for point in points
        for symbol in symbols
        if symbol in point.percent
    )
