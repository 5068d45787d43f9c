"""
Series Source

Interface to the per-ticker close-series collaborator, a CSV-backed
implementation used by the server, and concurrent group fetching.

CSV files live at `<data_dir>/<SYMBOL>.csv` with a header row containing a
`time` (unix seconds) or `timestamp` (unix seconds or ISO datetime) column
and a `close` column. Other columns are ignored.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

import pandas as pd

from .config import TIMEFRAME_SECONDS
from .errors import SeriesFetchError
from .types import RawPoint

logger = logging.getLogger(__name__)


class SeriesFetcher(Protocol):
    """Anything that can fetch one ticker's close series."""

    def fetch(
        self,
        symbol: str,
        timeframe: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[RawPoint]:
        """
        Fetch closes for a symbol.

        Raises:
            SeriesFetchError: If the series cannot be fetched
        """
        ...


@dataclass
class SeriesFetchResult:
    """Outcome of fetching one symbol."""
    symbol: str
    points: List[RawPoint] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _epoch_seconds(value: datetime) -> int:
    return int(as_utc(value).timestamp())


class CsvSeriesSource:
    """Reads close series from per-symbol CSV files."""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def path_for(self, symbol: str) -> Path:
        """CSV path for a symbol; file names are matched case-insensitively."""
        symbol = symbol.upper()
        path = self.data_dir / f"{symbol}.csv"
        if not path.exists() and self.data_dir.exists():
            for candidate in self.data_dir.glob("*.csv"):
                if candidate.stem.upper() == symbol:
                    return candidate
        return path

    def available_symbols(self) -> List[str]:
        """Symbols with a CSV file in the data directory."""
        if not self.data_dir.exists():
            return []
        return sorted(p.stem.upper() for p in self.data_dir.glob("*.csv"))

    def load_frame(self, symbol: str) -> pd.DataFrame:
        """
        Load a symbol's full series.

        Returns:
            DataFrame with int64 `timestamp` (unix seconds) and float64 `close`
            columns, sorted by timestamp with duplicate timestamps removed.

        Raises:
            SeriesFetchError: If the file is missing or cannot be parsed
        """
        path = self.path_for(symbol)
        if not path.exists():
            raise SeriesFetchError(symbol, f"No data file at {path}")

        try:
            df = pd.read_csv(path, sep=',', engine='c')
            df.columns = df.columns.str.lower().str.strip()

            time_column = 'time' if 'time' in df.columns else 'timestamp'
            if time_column not in df.columns or 'close' not in df.columns:
                raise ValueError(f"Missing required columns. Found: {df.columns.tolist()}")

            if pd.api.types.is_numeric_dtype(df[time_column]):
                seconds = df[time_column].astype('int64')
            else:
                parsed = pd.to_datetime(df[time_column], utc=True)
                seconds = (parsed - pd.Timestamp(0, tz='UTC')) // pd.Timedelta(seconds=1)

            frame = pd.DataFrame({
                'timestamp': seconds.astype('int64'),
                'close': pd.to_numeric(df['close'], errors='coerce').astype('float64'),
            })
        except (KeyError, ValueError, TypeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise SeriesFetchError(symbol, f"Error parsing file: {e}")

        frame = frame.dropna(subset=['close'])
        frame = frame.sort_values('timestamp', kind='stable')
        frame = frame[~frame['timestamp'].duplicated(keep='last')]
        return frame.reset_index(drop=True)

    def fetch(
        self,
        symbol: str,
        timeframe: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[RawPoint]:
        """
        Fetch the timeframe window of a symbol.

        Fixed timeframes are anchored at the series' last timestamp. Custom
        ranges filter on [start, end]; when start equals end the window is
        the UTC day starting at start. A Custom request without both bounds
        returns the full series.
        """
        frame = self.load_frame(symbol)
        if frame.empty:
            return []

        if timeframe == "Custom":
            if start is not None and end is not None:
                first, last = _epoch_seconds(start), _epoch_seconds(end)
                if last == first:
                    # Single trading day: the whole UTC day from start
                    last = _epoch_seconds(as_utc(start) + timedelta(days=1)) - 1
                mask = (frame['timestamp'] >= first) & (frame['timestamp'] <= last)
                frame = frame[mask]
        elif timeframe in TIMEFRAME_SECONDS:
            last = int(frame['timestamp'].iloc[-1])
            frame = frame[frame['timestamp'] >= last - TIMEFRAME_SECONDS[timeframe]]
        else:
            raise SeriesFetchError(symbol, f"Unsupported timeframe {timeframe!r}")

        return [
            RawPoint(timestamp=int(ts), close=float(close))
            for ts, close in zip(frame['timestamp'], frame['close'])
        ]


def fetch_series_group(
    symbols: Sequence[str],
    fetcher: SeriesFetcher,
    timeframe: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    max_workers: Optional[int] = None
) -> Dict[str, SeriesFetchResult]:
    """
    Fetch several symbols concurrently and independently.

    A failure for one symbol never cancels the others; each symbol gets its
    own SeriesFetchResult, in the order given.
    """
    if not symbols:
        return {}

    def fetch_one(symbol: str) -> SeriesFetchResult:
        try:
            points = fetcher.fetch(symbol, timeframe, start, end)
        except SeriesFetchError as e:
            logger.warning(f"Fetch failed for {symbol}: {e.message}")
            return SeriesFetchResult(symbol=symbol, error=e.message)
        return SeriesFetchResult(symbol=symbol, points=list(points))

    with ThreadPoolExecutor(max_workers=max_workers or len(symbols)) as executor:
        results = list(executor.map(fetch_one, symbols))
    return {result.symbol: result for result in results}
