"""
Tickers router for the Comparison Chart.

Provides endpoints for the ticker collection and aligned series:
- GET /api/tickers - List tickers
- POST /api/tickers - Add a ticker (fetches its series)
- DELETE /api/tickers/{symbol} - Remove a ticker
- POST /api/tickers/{symbol}/visibility - Toggle visibility
- GET /api/tickers/series - Aligned percent-change series
- GET /api/tickers/export - Aligned series as CSV
"""

from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..errors import InvalidInputError
from ..export import export_csv, export_filename
from ..schemas import AlignedPointResponse, SeriesResponse, TickerRequest, TickerResponse

router = APIRouter(prefix="/api/tickers", tags=["tickers"])


@router.get("", response_model=List[TickerResponse])
async def list_tickers():
    """List tickers in display order."""
    from ..api import get_state, ticker_response

    s = get_state()
    return [ticker_response(s.session, t.symbol) for t in s.session.tickers]


@router.post("", response_model=TickerResponse)
async def add_ticker(request: TickerRequest):
    """
    Add a ticker.

    A failed fetch still adds the ticker; the series endpoint then reports
    the group as unavailable.
    """
    from ..api import get_state, ticker_response

    s = get_state()
    try:
        ticker = s.session.add_ticker(request.symbol)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ticker_response(s.session, ticker.symbol)


@router.get("/series", response_model=SeriesResponse)
async def get_series():
    """Aligned series for the visible tickers."""
    from ..api import get_state

    s = get_state()
    result = s.session.alignment()
    return SeriesResponse(
        status=result.status.value,
        message=result.message(),
        points=[AlignedPointResponse(**p.to_dict()) for p in result.points],
        failed_symbols=result.failed_symbols,
        pending_symbols=result.pending_symbols,
        errors=result.errors,
    )


@router.get("/export")
async def export_series():
    """Download the aligned series as CSV."""
    from ..api import get_state

    s = get_state()
    symbols = s.session.visible_symbols()
    try:
        content = export_csv(s.session.alignment().points, symbols)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    filename = export_filename([t.symbol for t in s.session.tickers])
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.delete("/{symbol}")
async def remove_ticker(symbol: str):
    """Remove a ticker."""
    from ..api import get_state

    s = get_state()
    if not s.session.remove_ticker(symbol):
        raise HTTPException(status_code=404, detail=f"Ticker {symbol} not found")
    return {"status": "ok", "symbol": symbol.upper()}


@router.post("/{symbol}/visibility", response_model=TickerResponse)
async def toggle_visibility(symbol: str):
    """Show or hide a ticker."""
    from ..api import get_state, ticker_response

    s = get_state()
    ticker = s.session.toggle_visibility(symbol)
    if ticker is None:
        raise HTTPException(status_code=404, detail=f"Ticker {symbol} not found")
    return ticker_response(s.session, ticker.symbol)
