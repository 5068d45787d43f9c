"""Core data types for series alignment."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import AlignmentStatus, TICKER_COLORS


@dataclass(frozen=True)
class RawPoint:
    """One candle close for one ticker."""
    timestamp: int      # Unix seconds
    close: float


@dataclass
class TickerSeries:
    """A user-added ticker and its fetched points."""
    symbol: str
    points: List[RawPoint] = field(default_factory=list)
    visible: bool = True
    color_index: int = 0

    @property
    def color(self) -> str:
        return TICKER_COLORS[self.color_index % len(TICKER_COLORS)]

    def to_dict(self) -> dict:
        """Serialize ticker settings (points are re-fetched, not stored)."""
        return {
            'symbol': self.symbol,
            'visible': self.visible,
            'color_index': self.color_index,
            'color': self.color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TickerSeries':
        """Deserialize ticker settings."""
        return cls(
            symbol=data['symbol'],
            visible=data.get('visible', True),
            color_index=data.get('color_index', 0),
        )


@dataclass(frozen=True)
class AlignedPoint:
    """One entry of the aligned timeline."""
    timestamp: int
    label: str
    percent: Dict[str, float]   # symbol -> percent change from base
    price: Dict[str, float]     # symbol -> raw close

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'label': self.label,
            'percent': dict(self.percent),
            'price': dict(self.price),
        }


@dataclass(frozen=True)
class DataPoint:
    """Nearest timeline entry to a click, as seen by the interaction layer."""
    index: int
    timestamp: int
    time_label: str
    value: float        # Percent value of the first visible series


@dataclass
class AlignmentResult:
    """Aligned series plus the fail-together status of the group."""
    status: AlignmentStatus
    points: List[AlignedPoint] = field(default_factory=list)
    failed_symbols: List[str] = field(default_factory=list)
    pending_symbols: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_ready(self) -> bool:
        return self.status == AlignmentStatus.READY

    def message(self) -> Optional[str]:
        """Human-readable state for the empty/error view."""
        if self.status == AlignmentStatus.UNAVAILABLE:
            return "One or more series unavailable: " + ", ".join(self.failed_symbols)
        if self.status == AlignmentStatus.LOADING:
            return "Loading " + ", ".join(self.pending_symbols)
        if self.status == AlignmentStatus.EMPTY:
            return "No common timestamps across visible series"
        return None
