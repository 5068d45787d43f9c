"""
Comparison Chart API routers.

This package contains modular FastAPI routers for each functional domain:
- session: Session state, timeframe and reset
- tickers: Ticker collection, aligned series and CSV export
- annotations: Annotation listing, delete and clear-all
- interaction: Mode, layout, click, pointer and modal events
- history: Saved sessions
"""

from .session import router as session_router
from .tickers import router as tickers_router
from .annotations import router as annotations_router
from .interaction import router as interaction_router
from .history import router as history_router

__all__ = [
    "session_router",
    "tickers_router",
    "annotations_router",
    "interaction_router",
    "history_router",
]
