"""
History router for the Comparison Chart.

Provides endpoints for saved sessions:
- GET /api/history - List saved sessions, newest first
- POST /api/history/{session_id}/restore - Load a saved session
- DELETE /api/history/{session_id} - Delete one saved session
- DELETE /api/history - Delete all saved sessions
"""

from typing import List

from fastapi import APIRouter, HTTPException

from ..models import HistoryEntry
from ..schemas import HistoryDeleteResponse, HistoryEntryResponse, SessionResponse

router = APIRouter(prefix="/api/history", tags=["history"])


def _entry_response(entry: HistoryEntry) -> HistoryEntryResponse:
    return HistoryEntryResponse(
        session_id=entry.session_id,
        timeframe=entry.snapshot.timeframe,
        saved_at=entry.saved_at.isoformat(),
        symbols=[t.symbol for t in entry.snapshot.tickers],
        annotation_count=len(entry.snapshot.annotations),
    )


@router.get("", response_model=List[HistoryEntryResponse])
async def list_history():
    """List saved sessions."""
    from ..api import get_state

    s = get_state()
    return [_entry_response(e) for e in s.history.list_entries()]


@router.post("/{session_id}/restore", response_model=SessionResponse)
async def restore_session(session_id: str):
    """Replace the current chart with a saved one."""
    from ..api import get_state, session_response

    s = get_state()
    entry = s.history.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Saved session not found")
    s.session.restore(entry)
    return session_response(s.session)


@router.delete("/{session_id}", response_model=HistoryDeleteResponse)
async def delete_history_entry(session_id: str):
    """Delete one saved session."""
    from ..api import get_state

    s = get_state()
    if not s.history.delete(session_id):
        raise HTTPException(status_code=404, detail="Saved session not found")
    return HistoryDeleteResponse(deleted=1)


@router.delete("", response_model=HistoryDeleteResponse)
async def clear_history():
    """Delete every saved session."""
    from ..api import get_state

    s = get_state()
    return HistoryDeleteResponse(deleted=s.history.delete_all())
