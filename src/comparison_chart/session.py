"""
Comparison Session

Owns everything one comparison chart needs: the ticker collection and their
fetched series, the annotation store, both controllers, the current layout
and the debounced saver. UI adapters (the HTTP routers, tests) talk to the
engine only through the handlers on this class.

Pointer event ordering: the drag controller sees pointer-down first. When
it claims the pointer, the click that the same gesture produces is
swallowed so a drag never also creates an annotation.
"""

import logging
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Set, Union

from .aligner import build_alignment
from .annotation_model import AnnotationModel, AnnotationStore
from .config import AnnotationMode, ChartConfig, TIMEFRAMES
from .drag_controller import DragController, DragSession
from .errors import ChartError, InvalidInputError
from .interaction_controller import ChartClick, InteractionController
from .models import Annotation, HistoryEntry, SessionSnapshot
from .persistence import DebouncedSessionSaver, PersistenceGateway
from .scale import ChartLayout, LinearScale, PlotArea
from .series_source import SeriesFetcher, SeriesFetchResult, as_utc, fetch_series_group
from .types import AlignmentResult, DataPoint, RawPoint, TickerSeries

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Session ids look like compare-1704412800000-3f9a1c2b7."""
    return f"compare-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class ComparisonSession:
    """One comparison chart and its annotations."""

    def __init__(
        self,
        config: Optional[ChartConfig] = None,
        gateway: Optional[PersistenceGateway] = None,
        fetcher: Optional[SeriesFetcher] = None,
        clock: Callable[[], float] = time.monotonic,
        session_id: Optional[str] = None
    ):
        """
        Initialize a fresh session.

        Args:
            config: Chart configuration (uses defaults if None)
            gateway: History store for debounced saves (None disables saving)
            fetcher: Series collaborator used by load_series()
            clock: Monotonic clock for the save debounce
            session_id: Explicit id (a new one is generated if None)
        """
        self.config = config or ChartConfig.default()
        self.fetcher = fetcher
        self.session_id = session_id or new_session_id()
        self.timeframe = self.config.default_timeframe
        self.custom_start_date: Optional[datetime] = None
        self.custom_end_date: Optional[datetime] = None

        self.tickers: List[TickerSeries] = []
        self._failures: Dict[str, str] = {}
        self._loaded: Set[str] = set()

        self.store = AnnotationStore()
        self.store.add_listener(lambda model: self._changed())
        self.interaction = InteractionController(self.store, self.config)
        self.drag = DragController(self.store, self.config)

        self.plot_area: Optional[PlotArea] = None
        self.layout = ChartLayout()
        self._alignment = build_alignment([], self.timeframe)
        self._suppress_click = False

        self.saver = DebouncedSessionSaver(
            gateway,
            self.snapshot,
            debounce_seconds=self.config.save_debounce_seconds,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Tickers and timeframe
    # ------------------------------------------------------------------

    def get_ticker(self, symbol: str) -> Optional[TickerSeries]:
        symbol = symbol.strip().upper()
        for ticker in self.tickers:
            if ticker.symbol == symbol:
                return ticker
        return None

    def visible_symbols(self) -> List[str]:
        return [t.symbol for t in self.tickers if t.visible]

    def _free_color_index(self) -> int:
        used = {t.color_index for t in self.tickers}
        for index in range(self.config.max_tickers):
            if index not in used:
                return index
        return len(self.tickers)

    def add_ticker(self, symbol: str, fetch: bool = True) -> TickerSeries:
        """
        Add a ticker with the first free palette color.

        Raises:
            InvalidInputError: Empty or duplicate symbol, or ticker limit reached
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise InvalidInputError("Ticker symbol is required")
        if self.get_ticker(symbol) is not None:
            raise InvalidInputError(f"{symbol} is already on the chart")
        if len(self.tickers) >= self.config.max_tickers:
            logger.warning(f"Ticker limit reached, rejected {symbol}")
            raise InvalidInputError(f"At most {self.config.max_tickers} tickers can be compared")

        ticker = TickerSeries(symbol=symbol, color_index=self._free_color_index())
        self.tickers.append(ticker)
        logger.info(f"Added ticker {symbol}")
        self._changed()

        if fetch and self.fetcher is not None:
            self.load_series(symbols=[symbol])
        else:
            self._refresh()
        return ticker

    def remove_ticker(self, symbol: str) -> bool:
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return False
        self.tickers.remove(ticker)
        self._failures.pop(ticker.symbol, None)
        self._loaded.discard(ticker.symbol)
        logger.info(f"Removed ticker {ticker.symbol}")
        self._changed()
        self._refresh()
        return True

    def toggle_visibility(self, symbol: str) -> Optional[TickerSeries]:
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return None
        ticker.visible = not ticker.visible
        self._changed()
        self._refresh()
        return ticker

    def set_timeframe(
        self,
        timeframe: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> None:
        """
        Switch timeframe. Every series must be fetched again afterwards.

        Naive bounds are taken as UTC. Equal bounds select a single day.

        Raises:
            InvalidInputError: Unknown timeframe, or a Custom range that ends
                before it starts
        """
        if timeframe not in TIMEFRAMES:
            raise InvalidInputError(f"Unknown timeframe {timeframe!r}")
        start = as_utc(start) if start is not None else None
        end = as_utc(end) if end is not None else None
        if timeframe == "Custom" and start is not None and end is not None and end < start:
            raise InvalidInputError("Custom range cannot end before it starts")

        self.timeframe = timeframe
        if timeframe == "Custom":
            self.custom_start_date = start
            self.custom_end_date = end
        else:
            self.custom_start_date = None
            self.custom_end_date = None

        self._loaded.clear()
        self._failures.clear()
        for ticker in self.tickers:
            ticker.points = []
        self._changed()

        if self.fetcher is not None and self.tickers:
            self.load_series()
        else:
            self._refresh()

    # ------------------------------------------------------------------
    # Series data
    # ------------------------------------------------------------------

    def load_series(
        self,
        fetcher: Optional[SeriesFetcher] = None,
        symbols: Optional[Sequence[str]] = None
    ) -> Dict[str, SeriesFetchResult]:
        """
        Fetch series for the given symbols (all tickers by default).

        Raises:
            ChartError: If no fetcher is available
        """
        fetcher = fetcher or self.fetcher
        if fetcher is None:
            raise ChartError("No series fetcher configured")
        symbols = list(symbols) if symbols is not None else [t.symbol for t in self.tickers]

        results = fetch_series_group(
            symbols, fetcher, self.timeframe, self.custom_start_date, self.custom_end_date
        )
        for symbol, result in results.items():
            if result.ok:
                self.set_series_data(symbol, result.points, refresh=False)
            else:
                self.mark_fetch_failed(symbol, result.error, refresh=False)
        self._refresh()
        return results

    def set_series_data(self, symbol: str, points: Sequence[RawPoint], refresh: bool = True) -> None:
        """Record a successful fetch."""
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return
        ticker.points = list(points)
        self._failures.pop(ticker.symbol, None)
        self._loaded.add(ticker.symbol)
        if refresh:
            self._refresh()

    def mark_fetch_failed(self, symbol: str, message: str, refresh: bool = True) -> None:
        """Record a failed fetch; it blocks alignment for the whole group."""
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return
        ticker.points = []
        self._loaded.discard(ticker.symbol)
        self._failures[ticker.symbol] = message
        if refresh:
            self._refresh()

    def is_loaded(self, symbol: str) -> bool:
        return symbol in self._loaded

    def fetch_error(self, symbol: str) -> Optional[str]:
        return self._failures.get(symbol)

    def alignment(self) -> AlignmentResult:
        return self._alignment

    def data_point_at(self, index: int) -> Optional[DataPoint]:
        """
        Timeline entry at an index as a DataPoint.

        The value is the percent of the first visible series that has one
        at that entry.
        """
        timeline = self.layout.timeline or tuple(self._alignment.points)
        if not 0 <= index < len(timeline):
            return None
        point = timeline[index]
        for symbol in self.visible_symbols():
            if symbol in point.percent:
                return DataPoint(
                    index=index,
                    timestamp=point.timestamp,
                    time_label=point.label,
                    value=point.percent[symbol],
                )
        return None

    def nearest_data_point(self, x: float) -> Optional[DataPoint]:
        """Data point under an x pixel, snapped to the nearest timeline entry."""
        scale = self.layout.time_scale
        if scale is None:
            return None
        position = scale.to_domain(x)
        if position is None:
            # Single-entry timeline: every x maps onto it
            return self.data_point_at(0) if len(self.layout.timeline) == 1 else None
        index = int(round(scale.clamp_domain(position)))
        return self.data_point_at(index)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def apply_layout(self, plot_area: PlotArea) -> ChartLayout:
        """Record the rendered plot rectangle and rebuild both scales."""
        self.plot_area = plot_area
        self._refresh()
        return self.layout

    def _refresh(self) -> None:
        self._alignment = build_alignment(
            self.tickers, self.timeframe, self._failures, self._loaded
        )
        self.layout = self._build_layout()
        self.interaction.set_layout(self.layout)
        self.drag.set_layout(self.layout)

    def _build_layout(self) -> ChartLayout:
        if self.plot_area is None or not self._alignment.is_ready:
            return ChartLayout()
        points = self._alignment.points
        symbols = self.visible_symbols()
        area = self.plot_area
        return ChartLayout(
            value_scale=LinearScale.for_values(
                (p.percent[s] for p in points for s in symbols if s in p.percent),
                pixel_bottom=area.bottom,
                pixel_top=area.top,
                padding_fraction=self.config.value_padding_fraction,
            ),
            time_scale=LinearScale.for_timeline(len(points), area.left, area.right),
            timeline=tuple(points),
        )

    # ------------------------------------------------------------------
    # Pointer and annotation handlers
    # ------------------------------------------------------------------

    def on_mode_select(self, mode: Optional[AnnotationMode]) -> None:
        self.interaction.select_mode(mode)

    def on_pointer_down(self, x: float, y: float) -> Optional[DragSession]:
        session = self.drag.pointer_down(x, y)
        self._suppress_click = session is not None
        return session

    def on_pointer_move(self, x: float, y: float) -> Optional[Annotation]:
        return self.drag.pointer_move(x, y)

    def on_pointer_up(self) -> bool:
        return self.drag.pointer_up()

    def on_pointer_leave(self) -> bool:
        # No click follows a gesture that left the document
        self._suppress_click = False
        return self.drag.pointer_leave()

    def on_chart_click(
        self,
        x: float,
        y: float,
        data_point: Optional[DataPoint] = None
    ) -> Optional[Annotation]:
        """
        Route a chart click to the interaction controller.

        The nearest data point is derived from x when the caller does not
        supply one.
        """
        if self._suppress_click:
            self._suppress_click = False
            return None
        if data_point is None:
            data_point = self.nearest_data_point(x)
        return self.interaction.click(ChartClick(x=x, y=y, data_point=data_point))

    def on_annotation_double_click(self, annotation_id: str) -> Optional[Annotation]:
        return self.interaction.double_click(annotation_id)

    def on_save_draft(self, text: str = "", value_text: Optional[str] = None) -> Annotation:
        return self.interaction.save(text, value_text)

    def on_cancel_draft(self) -> None:
        self.interaction.cancel()

    def on_delete_annotation(self) -> Optional[str]:
        """Delete from the edit modal."""
        return self.interaction.delete()

    def delete_annotation(self, annotation_id: str) -> bool:
        """Delete by id outside the modal. Closes the modal if it was open on it."""
        editing = self.interaction.editing
        if editing is not None and editing.annotation_id == annotation_id:
            self.interaction.reset()
        return self.store.delete(annotation_id)

    def on_clear_all(self, confirmed: bool) -> bool:
        return self.interaction.clear_all(confirmed)

    def on_escape(self) -> None:
        self.interaction.escape()

    def current_annotations(self) -> List[Annotation]:
        return self.store.model.to_list()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        self.saver.notify()

    def snapshot(self) -> SessionSnapshot:
        """Serializable state (ticker settings only, no fetched points)."""
        return SessionSnapshot(
            session_id=self.session_id,
            timeframe=self.timeframe,
            tickers=[
                TickerSeries(symbol=t.symbol, visible=t.visible, color_index=t.color_index)
                for t in self.tickers
            ],
            annotations=self.current_annotations(),
            custom_start_date=self.custom_start_date,
            custom_end_date=self.custom_end_date,
        )

    def poll_persistence(self) -> bool:
        return self.saver.poll()

    def _reset_transient(self) -> None:
        self.interaction.reset()
        self.drag.pointer_up()
        self._suppress_click = False
        self._failures.clear()
        self._loaded.clear()

    def restore(self, entry: Union[HistoryEntry, SessionSnapshot]) -> None:
        """
        Load a saved chart into this session, saving pending changes first.

        The session keeps its own id, so later edits never overwrite the
        saved entry they were restored from.
        """
        snapshot = entry.snapshot if isinstance(entry, HistoryEntry) else entry
        if self.saver.pending:
            self.saver.flush()

        self._reset_transient()
        self.timeframe = snapshot.timeframe
        self.custom_start_date = (
            as_utc(snapshot.custom_start_date) if snapshot.custom_start_date else None
        )
        self.custom_end_date = (
            as_utc(snapshot.custom_end_date) if snapshot.custom_end_date else None
        )
        self.tickers = [
            TickerSeries(symbol=t.symbol, visible=t.visible, color_index=t.color_index)
            for t in snapshot.tickers
        ]
        self.store.replace(AnnotationModel(tuple(snapshot.annotations)))
        self.saver.reset(last_saved=self.snapshot())
        logger.info(f"Restored {snapshot.session_id} into session {self.session_id}")

        if self.fetcher is not None and self.tickers:
            self.load_series()
        else:
            self._refresh()

    def new_session(self) -> str:
        """
        Start over: flush the current session if it has content, then reset
        to an empty chart with a fresh id and the default timeframe.
        """
        if self.snapshot().has_content():
            self.saver.flush()

        self._reset_transient()
        self.session_id = new_session_id()
        self.timeframe = self.config.default_timeframe
        self.custom_start_date = None
        self.custom_end_date = None
        self.tickers = []
        self.store.replace(AnnotationModel())
        self.saver.reset()
        self._refresh()
        logger.info(f"Started new session {self.session_id}")
        return self.session_id
