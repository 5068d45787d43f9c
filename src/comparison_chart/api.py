"""
FastAPI backend for the Comparison Chart.

Minimal server for:
- Ticker management and aligned percent-change series
- Annotation mode, click, drag and edit events
- Saved-session history
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import ChartConfig, valid_intervals
from .models import Annotation, PercentageMeasurement
from .schemas import AnnotationResponse, SessionResponse, TickerResponse
from .series_source import CsvSeriesSource
from .session import ComparisonSession
from .storage import HistoryStorage

logger = logging.getLogger(__name__)

# Seconds between debounced-save polls
SAVE_POLL_INTERVAL = 0.5


@dataclass
class AppState:
    """Application state for the Comparison Chart server."""
    session: ComparisonSession
    history: HistoryStorage
    source: Optional[CsvSeriesSource] = None
    data_dir: Optional[str] = None


# Global state
state: Optional[AppState] = None


async def _poll_saves() -> None:
    while True:
        if state is not None:
            state.session.poll_persistence()
        await asyncio.sleep(SAVE_POLL_INTERVAL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(_poll_saves())
    try:
        yield
    finally:
        task.cancel()
        if state is not None:
            state.session.saver.flush()


app = FastAPI(
    title="Comparison Chart Server",
    description="Backend for the multi-ticker comparison chart",
    version="0.1.0",
    lifespan=lifespan,
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_state() -> AppState:
    """Get the application state."""
    if state is None:
        raise HTTPException(
            status_code=500,
            detail="Application not initialized. Start server with --data-dir flag."
        )
    return state


# ============================================================================
# Response helpers shared by the routers
# ============================================================================


def annotation_response(annotation: Annotation) -> AnnotationResponse:
    """Convert domain annotation to API response."""
    data = annotation.to_dict()
    if isinstance(annotation, PercentageMeasurement):
        data['is_positive'] = annotation.is_positive
    return AnnotationResponse(**data)


def session_response(session: ComparisonSession) -> SessionResponse:
    """Convert session to API response."""
    return SessionResponse(
        session_id=session.session_id,
        timeframe=session.timeframe,
        custom_start_date=(
            session.custom_start_date.isoformat() if session.custom_start_date else None
        ),
        custom_end_date=(
            session.custom_end_date.isoformat() if session.custom_end_date else None
        ),
        tickers=[ticker_response(session, t.symbol) for t in session.tickers],
        annotation_count=len(session.store.model),
        valid_intervals=valid_intervals(
            session.timeframe, session.custom_start_date, session.custom_end_date
        ),
        save_pending=session.saver.pending,
    )


def ticker_response(session: ComparisonSession, symbol: str) -> TickerResponse:
    ticker = session.get_ticker(symbol)
    return TickerResponse(
        symbol=ticker.symbol,
        visible=ticker.visible,
        color_index=ticker.color_index,
        color=ticker.color,
        loaded=session.is_loaded(ticker.symbol),
        error=session.fetch_error(ticker.symbol),
    )


# ============================================================================
# Core API Endpoints
# ============================================================================


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "initialized": state is not None,
        "version": "0.1.0",
    }


@app.get("/api/symbols")
async def list_symbols():
    """Symbols available in the data directory."""
    s = get_state()
    return {"symbols": s.source.available_symbols() if s.source else []}


def init_app(
    data_dir: Optional[str] = None,
    history_file: Optional[str] = None,
    config: Optional[ChartConfig] = None
) -> AppState:
    """
    Initialize the application with a fresh session.

    Args:
        data_dir: Directory of per-symbol CSV files (None: no fetcher)
        history_file: Path to the history JSON file
        config: Chart configuration overrides
    """
    global state

    history = HistoryStorage(history_file)
    source = CsvSeriesSource(data_dir) if data_dir else None
    session = ComparisonSession(config=config, gateway=history, fetcher=source)

    state = AppState(
        session=session,
        history=history,
        source=source,
        data_dir=data_dir,
    )
    logger.info(f"Initialized comparison chart session {session.session_id}")
    return state


# ============================================================================
# Wire up routers
# ============================================================================

from .routers import (
    session_router,
    tickers_router,
    annotations_router,
    interaction_router,
    history_router,
)

app.include_router(session_router)
app.include_router(tickers_router)
app.include_router(annotations_router)
app.include_router(interaction_router)
app.include_router(history_router)
