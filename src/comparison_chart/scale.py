"""
Linear Scale

Affine mapping between a data-space axis (timeline index or percent value)
and pixel space. Scales are immutable values rebuilt after each layout pass
and handed to the controllers through a ChartLayout.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .types import AlignedPoint


@dataclass(frozen=True)
class LinearScale:
    """Affine map domain -> range with an explicit-failure inverse."""
    domain_min: float
    domain_max: float
    range_min: float
    range_max: float

    @property
    def domain_span(self) -> float:
        return self.domain_max - self.domain_min

    @property
    def range_span(self) -> float:
        return self.range_max - self.range_min

    def is_invertible(self) -> bool:
        """True when both spans are finite and non-zero."""
        bounds = (self.domain_min, self.domain_max, self.range_min, self.range_max)
        if not all(math.isfinite(b) for b in bounds):
            return False
        return self.domain_span != 0 and self.range_span != 0

    def to_range(self, value: float) -> float:
        """Map a domain value to pixels. A zero-span domain maps to the range midpoint."""
        if self.domain_span == 0:
            return (self.range_min + self.range_max) / 2
        return self.range_min + (value - self.domain_min) * self.range_span / self.domain_span

    def to_domain(self, pixel: float) -> Optional[float]:
        """
        Map pixels back to the domain.

        Returns:
            Domain value, or None when the scale cannot be inverted.
        """
        if not self.is_invertible() or not math.isfinite(pixel):
            return None
        return self.domain_min + (pixel - self.range_min) * self.domain_span / self.range_span

    def clamp_domain(self, value: float) -> float:
        """Clamp a domain value into [domain_min, domain_max]."""
        low, high = sorted((self.domain_min, self.domain_max))
        return max(low, min(high, value))

    def pixels_per_unit(self) -> Optional[float]:
        """Absolute pixels per domain unit, or None for a degenerate scale."""
        if not self.is_invertible():
            return None
        return abs(self.range_span / self.domain_span)

    @classmethod
    def for_values(
        cls,
        values: Iterable[float],
        pixel_bottom: float,
        pixel_top: float,
        padding_fraction: float = 0.05
    ) -> Optional['LinearScale']:
        """
        Build a value-axis scale over padded [min, max] of the values.

        Pixel y grows downwards, so the domain minimum maps to the bottom.
        Returns None when there are no values.
        """
        extent = value_extent_of(values)
        if extent is None:
            return None
        low, high = extent
        padding = (high - low) * padding_fraction
        return cls(
            domain_min=low - padding,
            domain_max=high + padding,
            range_min=pixel_bottom,
            range_max=pixel_top,
        )

    @classmethod
    def for_timeline(
        cls,
        length: int,
        pixel_left: float,
        pixel_right: float
    ) -> Optional['LinearScale']:
        """Build a time-axis scale over timeline indices [0, length - 1]."""
        if length <= 0:
            return None
        return cls(
            domain_min=0.0,
            domain_max=float(length - 1),
            range_min=pixel_left,
            range_max=pixel_right,
        )


def value_extent_of(values: Iterable[float]) -> Optional[Tuple[float, float]]:
    """Min and max of the finite values, or None if there are none."""
    finite = [v for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return None
    return min(finite), max(finite)


@dataclass(frozen=True)
class PlotArea:
    """Pixel bounds of the plotting rectangle after layout."""
    left: float
    right: float
    top: float
    bottom: float


@dataclass(frozen=True)
class ChartLayout:
    """
    Geometry handed to the controllers after a layout pass.

    Either scale may be None before live layout has been computed; the
    controllers treat that the same as a failed inverse.
    """
    value_scale: Optional[LinearScale] = None
    time_scale: Optional[LinearScale] = None
    timeline: Tuple[AlignedPoint, ...] = ()

    def index_of(self, timestamp: int) -> Optional[int]:
        """Timeline index of a timestamp, or None if it is not on the timeline."""
        for i, point in enumerate(self.timeline):
            if point.timestamp == timestamp:
                return i
        return None
