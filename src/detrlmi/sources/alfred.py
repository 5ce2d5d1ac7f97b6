from __future__ import annotations

from typing import Optional

import pandas as pd

from detrlmi.config.models import FredSettings
from detrlmi.sources.fred import FredClient

REVISION_COLUMNS = ["date", "initial", "final", "change", "pct_change", "items", "versions"]


def summarize_revisions(vintages: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse ALFRED vintages to one row per observation date.

    `initial` is the first published value and `final` the latest; `items` counts vintages
    and `versions` counts distinct values among them.
    """
    if vintages.empty:
        return pd.DataFrame(columns=REVISION_COLUMNS)

    ordered = vintages.sort_values(["date", "realtime_start"], kind="stable")
    grouped = ordered.groupby("date", sort=True)["value"]
    summary = pd.DataFrame(
        {
            "initial": grouped.first(skipna=False),
            "final": grouped.last(skipna=False),
            "items": grouped.size(),
            "versions": grouped.nunique(dropna=False),
        }
    )
    summary["change"] = summary["final"] - summary["initial"]
    summary["pct_change"] = summary["change"] / summary["initial"]
    return summary.reset_index()[REVISION_COLUMNS]


async def alfred_revision_analysis(
    series_id: str,
    *,
    client: Optional[FredClient] = None,
    settings: Optional[FredSettings] = None,
) -> pd.DataFrame:
    client = client or FredClient(settings)
    return summarize_revisions(await client.get_vintages(series_id))
