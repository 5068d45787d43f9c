"""
Comparison Chart Configuration

Defines the enums for annotation modes, controller states and alignment
status, plus the frozen configuration that centralizes the hand-tuned UX
constants (hit tolerances, tie-break ratio, axis padding, save debounce).
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional


class AnnotationMode(Enum):
    """Click-to-create annotation modes."""
    TEXT = "text"                # Vertical marker with text
    HORIZONTAL = "horizontal"    # Value-axis reference line
    PERCENTAGE = "percentage"    # Two-point measurement


class InteractionState(Enum):
    """Annotation-mode state machine states."""
    IDLE = "idle"
    MODE_SELECTED = "mode_selected"
    AWAITING_SECOND_POINT = "awaiting_second_point"
    PENDING_SAVE = "pending_save"
    EDITING = "editing"


class DragState(Enum):
    """Drag state machine states."""
    IDLE = "idle"
    DRAGGING = "dragging"


class DragAxis(Enum):
    """Axis a drag session moves its target along."""
    VALUE = "value"    # Horizontal levels move vertically
    TIME = "time"      # Text markers move horizontally, snapping to data


class AlignmentStatus(Enum):
    """Outcome of aligning the visible series group."""
    READY = "ready"
    EMPTY = "empty"              # All fetched, but no common timestamps
    LOADING = "loading"          # At least one visible series not fetched yet
    UNAVAILABLE = "unavailable"  # At least one visible series failed


# Fixed palette, one slot per concurrent ticker
TICKER_COLORS = [
    '#5AF5FA',  # Cyan
    '#FFA5FF',  # Pink
    '#AA99FF',  # Purple
    '#FAFF50',  # Yellow
    '#50FFA5',  # Green
]

TIMEFRAMES = ["1D", "5D", "2W", "1M", "3M", "6M", "1Y", "3Y", "Custom"]

# Seconds covered by each fixed timeframe window
TIMEFRAME_SECONDS = {
    "1D": 86400,
    "5D": 5 * 86400,
    "2W": 14 * 86400,
    "1M": 30 * 86400,
    "3M": 91 * 86400,
    "6M": 182 * 86400,
    "1Y": 365 * 86400,
    "3Y": 3 * 365 * 86400,
}

_INTERVALS_BY_TIMEFRAME = {
    "1D": ["15", "60", "180", "360"],
    "5D": ["15", "60", "180", "360", "D"],
    "2W": ["60", "180", "360", "D"],
    "1M": ["D"],
    "3M": ["D", "W"],
    "6M": ["D", "W", "M"],
    "1Y": ["D", "W", "M"],
    "3Y": ["W", "M"],
}


def valid_intervals(
    timeframe: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[str]:
    """
    Sampling intervals that make sense for a timeframe.

    Custom ranges are bucketed by their length in days.
    """
    if timeframe == "Custom":
        if start is None or end is None:
            return ["D"]
        days = (end - start).total_seconds() / 86400
        if days <= 1:
            return _INTERVALS_BY_TIMEFRAME["1D"]
        if days <= 7:
            return _INTERVALS_BY_TIMEFRAME["5D"]
        if days <= 14:
            return _INTERVALS_BY_TIMEFRAME["2W"]
        if days <= 30:
            return _INTERVALS_BY_TIMEFRAME["1M"]
        if days <= 90:
            return _INTERVALS_BY_TIMEFRAME["3M"]
        if days <= 365:
            return _INTERVALS_BY_TIMEFRAME["1Y"]
        return _INTERVALS_BY_TIMEFRAME["3Y"]
    return list(_INTERVALS_BY_TIMEFRAME.get(timeframe, ["D"]))


@dataclass(frozen=True)
class ChartConfig:
    """
    Tunable constants for the comparison chart engine.

    The tolerance and priority values are UX constants, not derived from a
    model; they are kept here so they can be adjusted without code changes.

    Attributes:
        horizontal_tolerance_fraction: Drag hit tolerance for horizontal
            levels as a fraction of the value-domain span.
        vertical_tolerance_fraction: Drag hit tolerance for vertical markers
            as a fraction of the timeline length (in data points).
        min_vertical_tolerance_points: Floor for the vertical tolerance.
        vertical_priority_ratio: A vertical candidate wins over a horizontal
            one only if it is at least this many times closer (in pixels).
        value_padding_fraction: Padding added on both ends of the value axis.
        save_debounce_seconds: Window in which session changes collapse into
            a single persistence write.
        max_tickers: Maximum concurrent series (palette size).
        default_timeframe: Timeframe for a fresh session.

    Example:
        >>> config = ChartConfig.default()
        >>> config.with_overrides(vertical_priority_ratio=3.0).vertical_priority_ratio
        3.0
    """
    horizontal_tolerance_fraction: float = 0.005
    vertical_tolerance_fraction: float = 0.02
    min_vertical_tolerance_points: int = 2
    vertical_priority_ratio: float = 2.0
    value_padding_fraction: float = 0.05
    save_debounce_seconds: float = 2.0
    max_tickers: int = len(TICKER_COLORS)
    default_timeframe: str = "2W"

    @classmethod
    def default(cls) -> "ChartConfig":
        """Create a config with default values."""
        return cls()

    def with_overrides(self, **kwargs: Any) -> "ChartConfig":
        """Create a new config with some values replaced."""
        values = asdict(self)
        values.update(kwargs)
        return ChartConfig(**values)
