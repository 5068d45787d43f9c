"""
Session router for the Comparison Chart.

Provides endpoints for session state management:
- GET /api/session - Get current session state
- POST /api/session/new - Save the current chart and start an empty one
- PUT /api/session/timeframe - Change timeframe (refetches all series)
- POST /api/session/save - Write the session to history now
"""

from fastapi import APIRouter, HTTPException

from ..errors import InvalidInputError
from ..schemas import SaveResponse, SessionResponse, TimeframeRequest

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("", response_model=SessionResponse)
async def get_session():
    """Get current session state."""
    from ..api import get_state, session_response

    s = get_state()
    return session_response(s.session)


@router.post("/new", response_model=SessionResponse)
async def new_session():
    """
    Start a new chart.

    The current chart is saved first if it has tickers, annotations or a
    custom range.
    """
    from ..api import get_state, session_response

    s = get_state()
    s.session.new_session()
    return session_response(s.session)


@router.put("/timeframe", response_model=SessionResponse)
async def set_timeframe(request: TimeframeRequest):
    """Change the timeframe. Custom ranges take start and end."""
    from ..api import get_state, session_response

    s = get_state()
    try:
        s.session.set_timeframe(request.timeframe, request.start, request.end)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session_response(s.session)


@router.post("/save", response_model=SaveResponse)
async def save_session():
    """Flush any pending save immediately."""
    from ..api import get_state

    s = get_state()
    return SaveResponse(saved=s.session.saver.flush())
