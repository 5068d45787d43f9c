"""CSV export of the aligned comparison series."""

from datetime import date
from typing import Optional, Sequence

import pandas as pd

from .errors import InvalidInputError
from .types import AlignedPoint


def aligned_frame(points: Sequence[AlignedPoint], symbols: Sequence[str]) -> pd.DataFrame:
    """
    Tabulate aligned points: Date, then `<SYM> %` per symbol, then `<SYM> Price`.

    Missing percent values (non-positive base) are left empty.
    """
    rows = []
    for point in points:
        row = {'Date': point.label}
        for symbol in symbols:
            row[f"{symbol} %"] = point.percent.get(symbol)
        for symbol in symbols:
            row[f"{symbol} Price"] = point.price.get(symbol)
        rows.append(row)

    columns = ['Date'] + [f"{s} %" for s in symbols] + [f"{s} Price" for s in symbols]
    return pd.DataFrame(rows, columns=columns)


def export_csv(points: Sequence[AlignedPoint], symbols: Sequence[str]) -> str:
    """
    Render the aligned series as CSV text.

    Raises:
        InvalidInputError: If there is no chart data to export
    """
    if not points:
        raise InvalidInputError("No chart data available to export")
    return aligned_frame(points, symbols).to_csv(index=False, lineterminator='\n')


def export_filename(symbols: Sequence[str], on: Optional[date] = None) -> str:
    """Download name, e.g. comparison-chart-AAPL-MSFT-2024-01-05.csv"""
    on = on or date.today()
    return f"comparison-chart-{'-'.join(symbols)}-{on.isoformat()}.csv"
