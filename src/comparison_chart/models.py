"""
Data Models for Chart Annotations

Defines the annotation variants layered on the comparison chart and the
session snapshot handed to the history store.

Annotation variants:
- TextMarker: vertical reference line anchored at a timeline timestamp
- HorizontalLevel: value-axis reference line; `value` is authoritative
- PercentageMeasurement: two-point measurement in percent space
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .errors import InvalidInputError
from .types import TickerSeries

# Schema version for snapshots written to the history store
# v1: Initial schema
SNAPSHOT_SCHEMA_VERSION = 1


def _require_finite(name: str, value: float) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number, got {value!r}")


@dataclass(frozen=True)
class TextMarker:
    """A vertical reference line with optional user text."""
    annotation_id: str
    timestamp: int
    value: float
    label: str = ""
    time_label: str = ""
    horizontal_pixel_offset: float = 0.0

    kind = "text"

    def __post_init__(self):
        _require_finite("timestamp", self.timestamp)
        _require_finite("value", self.value)

    @classmethod
    def create(
        cls,
        timestamp: int,
        value: float,
        label: str = "",
        time_label: str = ""
    ) -> 'TextMarker':
        """Factory method to create a marker with an auto-generated ID."""
        return cls(
            annotation_id=f"annotation-{uuid.uuid4()}",
            timestamp=timestamp,
            value=value,
            label=label,
            time_label=time_label,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            'type': self.kind,
            'annotation_id': self.annotation_id,
            'timestamp': self.timestamp,
            'value': self.value,
            'label': self.label,
            'time_label': self.time_label,
            'horizontal_pixel_offset': self.horizontal_pixel_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextMarker':
        """Deserialize from dictionary."""
        return cls(
            annotation_id=data['annotation_id'],
            timestamp=data['timestamp'],
            value=data['value'],
            label=data.get('label', ''),
            time_label=data.get('time_label', ''),
            horizontal_pixel_offset=data.get('horizontal_pixel_offset', 0.0),
        )


@dataclass(frozen=True)
class HorizontalLevel:
    """
    A value-axis reference line.

    `timestamp` only positions the on-chart label; `value` is the level.
    """
    annotation_id: str
    timestamp: int
    value: float
    label: str = ""
    time_label: str = ""
    horizontal_pixel_offset: float = 0.0

    kind = "horizontal"

    def __post_init__(self):
        _require_finite("timestamp", self.timestamp)
        _require_finite("value", self.value)

    @classmethod
    def create(
        cls,
        timestamp: int,
        value: float,
        label: str = "",
        time_label: str = ""
    ) -> 'HorizontalLevel':
        """Factory method to create a level with an auto-generated ID."""
        return cls(
            annotation_id=f"annotation-{uuid.uuid4()}",
            timestamp=timestamp,
            value=value,
            label=label,
            time_label=time_label,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            'type': self.kind,
            'annotation_id': self.annotation_id,
            'timestamp': self.timestamp,
            'value': self.value,
            'label': self.label,
            'time_label': self.time_label,
            'horizontal_pixel_offset': self.horizontal_pixel_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HorizontalLevel':
        """Deserialize from dictionary."""
        return cls(
            annotation_id=data['annotation_id'],
            timestamp=data['timestamp'],
            value=data['value'],
            label=data.get('label', ''),
            time_label=data.get('time_label', ''),
            horizontal_pixel_offset=data.get('horizontal_pixel_offset', 0.0),
        )


@dataclass(frozen=True)
class PercentageMeasurement:
    """
    A two-point measurement between percent values.

    Inputs are already percent-change values, so the delta is a direct
    subtraction in percentage points. It is derived on every read.
    """
    annotation_id: str
    start_timestamp: int
    start_value: float
    end_timestamp: int
    end_value: float
    start_time_label: str = ""
    end_time_label: str = ""

    kind = "percentage"

    def __post_init__(self):
        _require_finite("start_timestamp", self.start_timestamp)
        _require_finite("end_timestamp", self.end_timestamp)
        _require_finite("start_value", self.start_value)
        _require_finite("end_value", self.end_value)

    @property
    def percentage_delta(self) -> float:
        return self.end_value - self.start_value

    @property
    def is_positive(self) -> bool:
        """Direction used for coloring; a zero delta counts as positive."""
        return self.percentage_delta >= 0

    @classmethod
    def create(
        cls,
        start_timestamp: int,
        start_value: float,
        end_timestamp: int,
        end_value: float,
        start_time_label: str = "",
        end_time_label: str = ""
    ) -> 'PercentageMeasurement':
        """Factory method to create a measurement with an auto-generated ID."""
        return cls(
            annotation_id=f"percentage-{uuid.uuid4()}",
            start_timestamp=start_timestamp,
            start_value=start_value,
            end_timestamp=end_timestamp,
            end_value=end_value,
            start_time_label=start_time_label,
            end_time_label=end_time_label,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            'type': self.kind,
            'annotation_id': self.annotation_id,
            'start_timestamp': self.start_timestamp,
            'start_value': self.start_value,
            'end_timestamp': self.end_timestamp,
            'end_value': self.end_value,
            'start_time_label': self.start_time_label,
            'end_time_label': self.end_time_label,
            'percentage_delta': self.percentage_delta,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PercentageMeasurement':
        """Deserialize from dictionary. A stored delta is ignored and re-derived."""
        return cls(
            annotation_id=data['annotation_id'],
            start_timestamp=data['start_timestamp'],
            start_value=data['start_value'],
            end_timestamp=data['end_timestamp'],
            end_value=data['end_value'],
            start_time_label=data.get('start_time_label', ''),
            end_time_label=data.get('end_time_label', ''),
        )


Annotation = Union[TextMarker, HorizontalLevel, PercentageMeasurement]

ANNOTATION_TYPES = {
    TextMarker.kind: TextMarker,
    HorizontalLevel.kind: HorizontalLevel,
    PercentageMeasurement.kind: PercentageMeasurement,
}


def annotation_from_dict(data: Dict[str, Any]) -> Annotation:
    """Deserialize any annotation variant using its `type` tag."""
    kind = data.get('type')
    if kind not in ANNOTATION_TYPES:
        raise InvalidInputError(f"Unknown annotation type: {kind!r}")
    return ANNOTATION_TYPES[kind].from_dict(data)


@dataclass
class SessionSnapshot:
    """
    Serializable state of one comparison chart session.

    This is the payload handed to the persistence gateway.
    """
    session_id: str
    timeframe: str
    tickers: List[TickerSeries] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)
    custom_start_date: Optional[datetime] = None
    custom_end_date: Optional[datetime] = None

    def has_content(self) -> bool:
        """True if the snapshot is worth persisting."""
        has_custom_range = (
            self.timeframe == "Custom"
            and self.custom_start_date is not None
            and self.custom_end_date is not None
        )
        return bool(self.tickers or self.annotations or has_custom_range)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        custom = self.timeframe == "Custom"
        return {
            'session_id': self.session_id,
            'timeframe': self.timeframe,
            'custom_start_date': (
                self.custom_start_date.isoformat() if custom and self.custom_start_date else None
            ),
            'custom_end_date': (
                self.custom_end_date.isoformat() if custom and self.custom_end_date else None
            ),
            'tickers': [t.to_dict() for t in self.tickers],
            'annotations': [a.to_dict() for a in self.annotations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionSnapshot':
        """Deserialize from dictionary."""
        start = data.get('custom_start_date')
        end = data.get('custom_end_date')
        return cls(
            session_id=data['session_id'],
            timeframe=data['timeframe'],
            tickers=[TickerSeries.from_dict(t) for t in data.get('tickers', [])],
            annotations=[annotation_from_dict(a) for a in data.get('annotations', [])],
            custom_start_date=datetime.fromisoformat(start) if start else None,
            custom_end_date=datetime.fromisoformat(end) if end else None,
        )


@dataclass
class HistoryEntry:
    """A saved snapshot in the chart history store."""
    snapshot: SessionSnapshot
    saved_at: datetime
    schema_version: int = SNAPSHOT_SCHEMA_VERSION

    @property
    def session_id(self) -> str:
        return self.snapshot.session_id

    @classmethod
    def create(cls, snapshot: SessionSnapshot) -> 'HistoryEntry':
        """Factory method stamping the current time."""
        return cls(snapshot=snapshot, saved_at=datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        data = self.snapshot.to_dict()
        data['saved_at'] = self.saved_at.isoformat()
        data['schema_version'] = self.schema_version
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        """Deserialize from dictionary."""
        return cls(
            snapshot=SessionSnapshot.from_dict(data),
            saved_at=datetime.fromisoformat(data['saved_at']),
            schema_version=data.get('schema_version', 1),
        )
