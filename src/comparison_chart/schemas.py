"""
Pydantic models for the Comparison Chart API.

All request/response schemas for session, ticker, annotation, interaction
and history endpoints.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


# ============================================================================
# Session and Tickers
# ============================================================================


class TickerRequest(BaseModel):
    """Request to add a ticker."""
    symbol: str


class TickerResponse(BaseModel):
    """A ticker on the chart."""
    symbol: str
    visible: bool
    color_index: int
    color: str
    loaded: bool
    error: Optional[str] = None


class TimeframeRequest(BaseModel):
    """Request to change the timeframe."""
    timeframe: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class SessionResponse(BaseModel):
    """Session state returned by the API."""
    session_id: str
    timeframe: str
    custom_start_date: Optional[str] = None
    custom_end_date: Optional[str] = None
    tickers: List[TickerResponse]
    annotation_count: int
    valid_intervals: List[str]
    save_pending: bool


class SaveResponse(BaseModel):
    """Result of an explicit save."""
    saved: bool


# ============================================================================
# Aligned Series
# ============================================================================


class AlignedPointResponse(BaseModel):
    """One entry of the aligned timeline."""
    timestamp: int
    label: str
    percent: Dict[str, float]
    price: Dict[str, float]


class SeriesResponse(BaseModel):
    """Aligned series, or the reason there is no chart."""
    status: str
    message: Optional[str] = None
    points: List[AlignedPointResponse]
    failed_symbols: List[str]
    pending_symbols: List[str]
    errors: Dict[str, str]


# ============================================================================
# Annotations
# ============================================================================


class AnnotationResponse(BaseModel):
    """Any annotation variant. Fields not used by a variant are null."""
    type: str
    annotation_id: str
    timestamp: Optional[int] = None
    value: Optional[float] = None
    label: Optional[str] = None
    time_label: Optional[str] = None
    horizontal_pixel_offset: Optional[float] = None
    start_timestamp: Optional[int] = None
    start_value: Optional[float] = None
    end_timestamp: Optional[int] = None
    end_value: Optional[float] = None
    start_time_label: Optional[str] = None
    end_time_label: Optional[str] = None
    percentage_delta: Optional[float] = None
    is_positive: Optional[bool] = None


class ClearRequest(BaseModel):
    """Clear-all request; nothing happens unless confirmed."""
    confirmed: bool = False


class ClearResponse(BaseModel):
    """Result of clear-all."""
    cleared: bool
    removed: int


# ============================================================================
# Interaction
# ============================================================================


class ModeRequest(BaseModel):
    """Select an annotation mode (null to deselect)."""
    mode: Optional[str] = None


class LayoutRequest(BaseModel):
    """Pixel bounds of the rendered plot area."""
    left: float
    right: float
    top: float
    bottom: float


class ScaleResponse(BaseModel):
    """One axis scale."""
    domain_min: float
    domain_max: float
    range_min: float
    range_max: float


class LayoutResponse(BaseModel):
    """Scales computed from the latest layout."""
    value_scale: Optional[ScaleResponse] = None
    time_scale: Optional[ScaleResponse] = None
    timeline_length: int


class PointerRequest(BaseModel):
    """A pointer position in plot pixels."""
    x: float
    y: float


class ClickRequest(BaseModel):
    """
    A chart click. `index` pins the nearest timeline entry when the
    client already knows it; otherwise it is derived from x.
    """
    x: float
    y: float
    index: Optional[int] = None


class DoubleClickRequest(BaseModel):
    """Double-click on an existing annotation."""
    annotation_id: str


class DraftSaveRequest(BaseModel):
    """Save the text-entry / edit modal."""
    text: str = ""
    value_text: Optional[str] = None


class DataPointResponse(BaseModel):
    """Timeline entry captured by a click."""
    index: int
    timestamp: int
    time_label: str
    value: float


class InteractionStateResponse(BaseModel):
    """Interaction and drag state after an event."""
    state: str
    mode: Optional[str] = None
    first_point: Optional[DataPointResponse] = None
    draft: Optional[AnnotationResponse] = None
    editing: Optional[AnnotationResponse] = None
    dragging: bool
    drag_target: Optional[str] = None
    drag_axis: Optional[str] = None
    annotation: Optional[AnnotationResponse] = None


# ============================================================================
# History
# ============================================================================


class HistoryEntryResponse(BaseModel):
    """Summary of a saved session."""
    session_id: str
    timeframe: str
    saved_at: str
    symbols: List[str]
    annotation_count: int


class HistoryDeleteResponse(BaseModel):
    """Result of a history delete."""
    deleted: int
