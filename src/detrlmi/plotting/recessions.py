from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

import pandas as pd
from matplotlib.axes import Axes
from matplotlib.patches import Polygon, Rectangle

from detrlmi.analysis.recessions import make_recession_table
from detrlmi.sources.fred import FredClient

logger = logging.getLogger(__name__)


def add_recession_shading(
    ax: Axes,
    data: Optional[pd.DataFrame] = None,
    *,
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
    peak_col: str = "peak",
    trough_col: str = "trough",
    period_col: str = "periodyear",
    fill: str = "gray",
    alpha: float = 0.3,
    client: Optional[FredClient] = None,
) -> list[Polygon | Rectangle]:
    """
    Shade recession periods on a time-series axis.

    Each row of `data` becomes a full-height span from `peak_col` to `trough_col`. Rows whose
    `period_col` falls outside [start_year, end_year] are skipped. When `data` is None the
    recession table is fetched from FRED with `client`.

    Returns the added patches; an empty list when no recession falls in range.
    """
    if start_year is None:
        raise ValueError("start_year is required. Specify the earliest year to show recessions.")

    if data is None:
        logger.info("Fetching recession data from FRED.")
        data = asyncio.run(make_recession_table(client))

    selected = data.loc[data[period_col] >= start_year]
    if end_year is not None:
        selected = selected.loc[selected[period_col] <= end_year]

    patches: list[Polygon | Rectangle] = []
    for peak, trough in zip(selected[peak_col], selected[trough_col]):
        patches.append(ax.axvspan(peak, trough, color=fill, alpha=alpha, zorder=0, linewidth=0))
    return patches


def get_min_year(dates: Iterable) -> int:
    """Year of the earliest non-missing date, handy as `start_year`."""
    parsed = pd.to_datetime(pd.Series(list(dates)), errors="coerce").dropna()
    if parsed.empty:
        raise ValueError("No valid dates to take the minimum year from.")
    return int(parsed.min().year)
