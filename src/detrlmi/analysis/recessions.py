from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import pandas as pd

from detrlmi.sources.fred import FredClient

logger = logging.getLogger(__name__)

RECESSION_SERIES_ID = "USREC"
RECESSION_COLUMNS = ["peak", "trough", "periodyear"]


def build_recession_table(usrec: pd.DataFrame, *, today: Optional[date] = None) -> pd.DataFrame:
    """
    Turn the monthly USREC indicator (1 = recession) into one row per recession.

    `peak` is the month before the indicator turns on and `trough` the last month it is on.
    A recession still running at the end of the series is closed at the month before `today`.
    """
    series = usrec.loc[usrec["value"].notna(), ["date", "value"]].sort_values("date", kind="stable")
    if series.empty:
        return pd.DataFrame(columns=RECESSION_COLUMNS)

    in_recession = series["value"] > 0
    run_starts = series.loc[in_recession.ne(in_recession.shift()), ["date"]].copy()
    run_starts["in_recession"] = in_recession.loc[run_starts.index]

    current_month = pd.Timestamp(today or date.today()).to_period("M").to_timestamp()
    closing = pd.DataFrame({"date": [current_month], "in_recession": [not bool(run_starts["in_recession"].iloc[-1])]})
    runs = pd.concat([run_starts, closing], ignore_index=True)

    runs["date"] = pd.to_datetime(runs["date"]) - pd.DateOffset(months=1)
    runs["peak"] = runs["date"].shift(1)
    expansions = runs.loc[~runs["in_recession"].astype(bool) & runs["peak"].notna()]

    table = pd.DataFrame(
        {
            "peak": expansions["peak"],
            "trough": expansions["date"],
            "periodyear": expansions["peak"].dt.year.astype(int),
        }
    )
    return table.reset_index(drop=True)


async def make_recession_table(
    client: Optional[FredClient] = None,
    *,
    today: Optional[date] = None,
) -> pd.DataFrame:
    client = client or FredClient()
    usrec = await client.get_series(RECESSION_SERIES_ID)
    table = build_recession_table(usrec, today=today)
    logger.debug("Recession table built. rows=%d", len(table))
    return table
